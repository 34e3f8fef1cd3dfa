"""Tests for invitation codes and email verification codes."""

import re
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlmodel import Session

from pitwall.core import AlreadyUsed, Expired, Mismatch, NotFound, RateLimited
from pitwall.models import EmailVerification, InvitationCode, InvitationStatus
from pitwall.services.ledger import (
    InvitationLedger,
    VerificationCodes,
    generate_invitation_code,
    generate_verification_code,
    normalize_email,
)


def test_code_formats():
    assert re.fullmatch(r"FF1-2026-[A-Z0-9]{6}", generate_invitation_code(2026))
    for _ in range(50):
        code = generate_verification_code()
        assert re.fullmatch(r"[1-9]\d{5}", code)


def test_normalize_email():
    assert normalize_email("  Alice@Example.COM ") == "alice@example.com"


class TestInvitationLedger:
    def test_reserve_then_reuse_fails(self, engine):
        ledger = InvitationLedger(engine)
        code = ledger.create("admin")

        ledger.reserve(code)
        with pytest.raises(AlreadyUsed, match="Code used"):
            ledger.reserve(code)

        with Session(engine) as session:
            row = session.get(InvitationCode, code)
        assert row.status == InvitationStatus.RESERVED
        assert row.reserved_at is not None

    def test_unknown_code(self, engine):
        with pytest.raises(NotFound, match="Invalid code"):
            InvitationLedger(engine).reserve("FF1-2026-NOPE00")

    def test_mark_used_after_reservation(self, engine):
        ledger = InvitationLedger(engine)
        code = ledger.create("admin")
        ledger.reserve(code)

        with Session(engine) as session:
            ledger.mark_used(session, code, "alice", "alice@example.com")
            session.commit()
            row = session.get(InvitationCode, code)
            assert row.status == InvitationStatus.USED
            assert row.used_by == "alice"
            assert row.used_by_email == "alice@example.com"

    def test_mark_used_requires_reservation(self, engine):
        ledger = InvitationLedger(engine)
        code = ledger.create("admin")
        with Session(engine) as session:
            with pytest.raises(AlreadyUsed):
                ledger.mark_used(session, code, "alice", "alice@example.com")

    def test_bulk_create_and_delete(self, engine):
        ledger = InvitationLedger(engine)
        codes = ledger.create_bulk("admin", 5)

        assert len(set(codes)) == 5
        assert {row.code for row in ledger.list_codes()} == set(codes)

        ledger.delete(codes[0])
        assert len(ledger.list_codes()) == 4
        with pytest.raises(NotFound):
            ledger.delete(codes[0])

    def test_concurrent_reservations_have_one_winner(self, file_engine):
        ledger = InvitationLedger(file_engine)
        code = ledger.create("admin")
        workers = 8
        barrier = threading.Barrier(workers)

        def attempt(_):
            barrier.wait()
            try:
                ledger.reserve(code)
                return "reserved"
            except AlreadyUsed:
                return "used"

        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(attempt, range(workers)))

        assert outcomes.count("reserved") == 1
        assert outcomes.count("used") == workers - 1


class TestVerificationCodes:
    def test_issue_and_verify_once(self, engine, clock):
        codes = VerificationCodes(engine, clock=clock)
        code = codes.issue("Alice@Example.com")

        codes.verify("alice@example.com", code)
        with pytest.raises(NotFound, match="Code not found"):
            codes.verify("alice@example.com", code)

    def test_wrong_code_keeps_record(self, engine, clock):
        codes = VerificationCodes(engine, clock=clock)
        code = codes.issue("alice@example.com")
        wrong = "999999" if code != "999999" else "100000"

        with pytest.raises(Mismatch, match="Invalid code"):
            codes.verify("alice@example.com", wrong)
        codes.verify("alice@example.com", code)

    def test_expired_code(self, engine, clock):
        codes = VerificationCodes(engine, clock=clock)
        code = codes.issue("alice@example.com")

        clock.advance(601)
        with pytest.raises(Expired, match="Code expired"):
            codes.verify("alice@example.com", code)

    def test_code_valid_until_expiry(self, engine, clock):
        codes = VerificationCodes(engine, clock=clock)
        code = codes.issue("alice@example.com")

        clock.advance(600)
        codes.verify("alice@example.com", code)

    def test_issue_cooldown(self, engine, clock):
        codes = VerificationCodes(engine, clock=clock)
        codes.issue("alice@example.com")

        clock.advance(30)
        with pytest.raises(RateLimited, match="wait 1 minute"):
            codes.issue("ALICE@example.com")

        clock.advance(30)
        codes.issue("alice@example.com")

    def test_reissue_replaces_previous_code(self, engine, clock):
        codes = VerificationCodes(engine, clock=clock)
        codes.issue("alice@example.com")
        clock.advance(61)
        latest = codes.issue("alice@example.com")

        with Session(engine) as session:
            record = session.get(EmailVerification, "alice@example.com")
        assert record.code == latest
        assert record.expires_at == clock.now + 600

    def test_concurrent_verifications_have_one_winner(self, file_engine, clock):
        codes = VerificationCodes(file_engine, clock=clock)
        code = codes.issue("alice@example.com")
        workers = 8
        barrier = threading.Barrier(workers)

        def attempt(_):
            barrier.wait()
            try:
                codes.verify("alice@example.com", code)
                return "verified"
            except NotFound:
                return "gone"

        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(attempt, range(workers)))

        assert outcomes.count("verified") == 1
        assert outcomes.count("gone") == workers - 1
        with Session(file_engine) as session:
            assert session.get(EmailVerification, "alice@example.com") is None
