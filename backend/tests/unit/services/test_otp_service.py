"""Unit tests for the passcode engine."""

from __future__ import annotations

from datetime import timedelta

import pytest
from storefront.models.base import utcnow
from storefront.models.otp import OtpChallenge, OtpPurpose
from storefront.services._shared.clock import ensure_aware
from storefront.services._shared.errors import (
    InvalidOtpError,
    OtpAlreadyUsedError,
    OtpExpiredError,
    OtpMaxAttemptsError,
    OtpNotFoundError,
)
from storefront.services.otp.dto import OtpOutcome
from storefront.uow import SQLAlchemyUnitOfWork
from tests.factories.account import AccountFactory
from tests.factories.otp import DEFAULT_CODE, OtpChallengeFactory

PURPOSE = OtpPurpose.EMAIL_VERIFICATION


def _verify(service, account_id, code, purpose=PURPOSE):
    with SQLAlchemyUnitOfWork() as uow:
        return service.verify(uow, account_id, purpose, code)


def _wrong(code: str) -> str:
    return "000000" if code != "000000" else "111111"


class TestOtpCodes:
    def test_generate_is_six_digits_without_leading_zero(self, otp_service):
        for _ in range(50):
            code = otp_service.generate()
            assert len(code) == 6
            assert code.isdigit()
            assert 100000 <= int(code) <= 999999

    def test_hash_and_verify_code(self, otp_service):
        stored = otp_service.hash_code("654321")

        assert stored != "654321"
        assert otp_service.verify_code("654321", stored)
        assert not otp_service.verify_code("654320", stored)
        assert not otp_service.verify_code("654321", "not-a-hash")


class TestOtpIssue:
    def test_issue_stores_hash_and_window(self, otp_service, session):
        account = AccountFactory(pending=True)

        with SQLAlchemyUnitOfWork() as uow:
            issued = otp_service.issue(uow, account.id, PURPOSE)

        challenge = session.get(OtpChallenge, issued.challenge_id)
        assert challenge.code_hash != issued.code
        assert otp_service.verify_code(issued.code, challenge.code_hash)
        assert challenge.attempt_count == 0
        assert challenge.verified_at is None
        assert issued.expires_in_minutes == 15

    def test_issue_supersedes_previous_code(self, otp_service):
        account = AccountFactory(pending=True)
        account_id = account.id

        with SQLAlchemyUnitOfWork() as uow:
            first = otp_service.issue(uow, account_id, PURPOSE)
        with SQLAlchemyUnitOfWork() as uow:
            second = otp_service.issue(uow, account_id, PURPOSE)

        assert first.challenge_id != second.challenge_id
        # Only the newest challenge is ever consulted
        outcome = _verify(otp_service, account_id, second.code)
        assert outcome is OtpOutcome.VERIFIED

    def test_reissue_within_the_same_clock_tick_keeps_the_new_code(self, otp_service):
        account = AccountFactory(pending=True)
        account_id = account.id
        frozen = utcnow()
        otp_service._clock = lambda: frozen

        with SQLAlchemyUnitOfWork() as uow:
            first = otp_service.issue(uow, account_id, PURPOSE)
        with SQLAlchemyUnitOfWork() as uow:
            second = otp_service.issue(uow, account_id, PURPOSE)

        assert _verify(otp_service, account_id, second.code) is OtpOutcome.VERIFIED
        assert first.challenge_id != second.challenge_id
        assert _verify(otp_service, account_id, first.code) is OtpOutcome.ALREADY_USED

    def test_superseded_challenge_is_expired(self, otp_service, session):
        account = AccountFactory(pending=True)
        old = OtpChallengeFactory(account_id=account.id)
        old_id = old.id

        with SQLAlchemyUnitOfWork() as uow:
            otp_service.issue(uow, account.id, PURPOSE)

        session.expire_all()
        refreshed = session.get(OtpChallenge, old_id)
        assert ensure_aware(refreshed.expires_at) <= utcnow()

    def test_issue_does_not_touch_other_purpose(self, otp_service):
        account = AccountFactory()
        account_id = account.id
        OtpChallengeFactory(account_id=account_id, purpose=OtpPurpose.PASSWORD_RESET)

        with SQLAlchemyUnitOfWork() as uow:
            otp_service.issue(uow, account_id, PURPOSE)

        outcome = _verify(otp_service, account_id, DEFAULT_CODE, OtpPurpose.PASSWORD_RESET)
        assert outcome is OtpOutcome.VERIFIED


class TestOtpVerify:
    def test_missing_challenge(self, otp_service):
        account = AccountFactory(pending=True)

        assert _verify(otp_service, account.id, DEFAULT_CODE) is OtpOutcome.NOT_FOUND

    def test_success_marks_verified_and_counts_attempt(self, otp_service, session):
        account = AccountFactory(pending=True)
        challenge = OtpChallengeFactory(account_id=account.id)
        challenge_id = challenge.id

        assert _verify(otp_service, account.id, DEFAULT_CODE) is OtpOutcome.VERIFIED

        session.expire_all()
        stored = session.get(OtpChallenge, challenge_id)
        assert stored.verified_at is not None
        assert stored.attempt_count == 1

    def test_second_use_is_rejected(self, otp_service):
        account = AccountFactory(pending=True)
        account_id = account.id
        OtpChallengeFactory(account_id=account_id)

        assert _verify(otp_service, account_id, DEFAULT_CODE) is OtpOutcome.VERIFIED
        assert _verify(otp_service, account_id, DEFAULT_CODE) is OtpOutcome.ALREADY_USED

    def test_expired(self, otp_service):
        account = AccountFactory(pending=True)
        OtpChallengeFactory(account_id=account.id, expired=True)

        assert _verify(otp_service, account.id, DEFAULT_CODE) is OtpOutcome.EXPIRED

    def test_expiry_is_checked_before_attempts(self, otp_service):
        account = AccountFactory(pending=True)
        OtpChallengeFactory(account_id=account.id, expired=True, attempt_count=5)

        assert _verify(otp_service, account.id, DEFAULT_CODE) is OtpOutcome.EXPIRED

    def test_wrong_code_counts_attempt(self, otp_service, session):
        account = AccountFactory(pending=True)
        challenge = OtpChallengeFactory(account_id=account.id)
        challenge_id = challenge.id

        assert _verify(otp_service, account.id, _wrong(DEFAULT_CODE)) is OtpOutcome.INVALID

        session.expire_all()
        assert session.get(OtpChallenge, challenge_id).attempt_count == 1

    def test_max_attempts_locks_even_the_correct_code(self, otp_service, session):
        account = AccountFactory(pending=True)
        account_id = account.id
        challenge = OtpChallengeFactory(account_id=account_id)
        challenge_id = challenge.id

        outcomes = [_verify(otp_service, account_id, _wrong(DEFAULT_CODE)) for _ in range(5)]
        assert outcomes == [OtpOutcome.INVALID] * 5

        assert _verify(otp_service, account_id, DEFAULT_CODE) is OtpOutcome.MAX_ATTEMPTS
        session.expire_all()
        assert session.get(OtpChallenge, challenge_id).attempt_count == 5

    def test_verification_uses_injected_clock(self, otp_service, session):
        account = AccountFactory(pending=True)
        OtpChallengeFactory(account_id=account.id)

        otp_service._clock = lambda: utcnow() + timedelta(minutes=16)
        assert _verify(otp_service, account.id, DEFAULT_CODE) is OtpOutcome.EXPIRED


class TestOtpOutcome:
    @pytest.mark.parametrize(
        "outcome, error",
        [
            (OtpOutcome.NOT_FOUND, OtpNotFoundError),
            (OtpOutcome.ALREADY_USED, OtpAlreadyUsedError),
            (OtpOutcome.EXPIRED, OtpExpiredError),
            (OtpOutcome.MAX_ATTEMPTS, OtpMaxAttemptsError),
            (OtpOutcome.INVALID, InvalidOtpError),
        ],
    )
    def test_failures_map_to_errors(self, outcome, error):
        assert not outcome.ok
        assert isinstance(outcome.to_error(), error)

    def test_verified_has_no_error(self):
        assert OtpOutcome.VERIFIED.ok
        with pytest.raises(ValueError):
            OtpOutcome.VERIFIED.to_error()
