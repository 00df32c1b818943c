"""
Tests for the one-time code ledger (OneTimeCodeDB).

Run tests:
    pytest tests/core/test_otp_ledger.py -v
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy import select

from vault.core.db.crud import one_time_code_db
from vault.core.db.models import OneTimeCode
from vault.core.enums import OTPPurpose
from vault.core.utils import hmac_hash_otp

PURPOSE = OTPPurpose.DOCUMENT_DOWNLOAD


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


async def _issue(session, account, code="123456", expires_at=None, **kwargs):
    return await one_time_code_db.issue(
        session,
        account_id=account.id,
        code=code,
        purpose=PURPOSE,
        expires_at=expires_at or _now() + timedelta(minutes=5),
        **kwargs,
    )


class TestIssue:

    async def test_stores_digest_not_code(self, db_session, test_account):
        row = await _issue(db_session, test_account, code="654321")

        assert row.code_hash == hmac_hash_otp("654321")
        assert "654321" not in row.code_hash
        assert row.consumed is False
        assert row.consumed_at is None

    async def test_records_document_context(self, db_session, test_account):
        document_id = uuid4()
        row = await _issue(db_session, test_account, document_id=document_id)

        assert row.document_id == document_id

    async def test_each_issue_is_a_new_row(self, db_session, test_account):
        first = await _issue(db_session, test_account)
        second = await _issue(db_session, test_account)

        assert first.id != second.id
        assert await one_time_code_db.count(db_session) == 2


class TestFindActive:

    async def test_finds_matching_code(self, db_session, test_account):
        row = await _issue(db_session, test_account)

        found = await one_time_code_db.find_active(
            db_session, test_account.id, "123456", PURPOSE
        )

        assert found is not None
        assert found.id == row.id

    async def test_wrong_code(self, db_session, test_account):
        await _issue(db_session, test_account)

        assert (
            await one_time_code_db.find_active(
                db_session, test_account.id, "000000", PURPOSE
            )
            is None
        )

    async def test_empty_code(self, db_session, test_account):
        await _issue(db_session, test_account)

        assert (
            await one_time_code_db.find_active(db_session, test_account.id, "", PURPOSE)
            is None
        )

    async def test_other_account(self, db_session, test_account, other_account):
        await _issue(db_session, test_account)

        assert (
            await one_time_code_db.find_active(
                db_session, other_account.id, "123456", PURPOSE
            )
            is None
        )

    async def test_expiry_boundary(self, db_session, test_account):
        issued = _now()
        expires_at = issued + timedelta(minutes=5)
        await _issue(db_session, test_account, expires_at=expires_at)

        just_before = expires_at - timedelta(seconds=1)
        assert (
            await one_time_code_db.find_active(
                db_session, test_account.id, "123456", PURPOSE, now=just_before
            )
            is not None
        )
        assert (
            await one_time_code_db.find_active(
                db_session, test_account.id, "123456", PURPOSE, now=expires_at
            )
            is None
        )
        assert (
            await one_time_code_db.find_active(
                db_session,
                test_account.id,
                "123456",
                PURPOSE,
                now=expires_at + timedelta(seconds=1),
            )
            is None
        )

    async def test_consumed_code_is_not_active(self, db_session, test_account):
        row = await _issue(db_session, test_account)
        await one_time_code_db.consume(db_session, row.id)

        assert (
            await one_time_code_db.find_active(
                db_session, test_account.id, "123456", PURPOSE
            )
            is None
        )


class TestConsume:

    async def test_consume_once(self, db_session, test_account):
        row = await _issue(db_session, test_account)

        assert await one_time_code_db.consume(db_session, row.id) is True
        assert await one_time_code_db.consume(db_session, row.id) is False

        await db_session.refresh(row)
        assert row.consumed is True
        assert row.consumed_at is not None

    async def test_second_session_loses(self, session_factory, test_account, db_session):
        row = await _issue(db_session, test_account)

        async with session_factory() as first, session_factory() as second:
            results = [
                await one_time_code_db.consume(first, row.id),
                await one_time_code_db.consume(second, row.id),
            ]

        assert results == [True, False]

    async def test_unknown_id(self, db_session):
        assert await one_time_code_db.consume(db_session, uuid4()) is False


class TestInvalidatePrevious:

    async def test_marks_outstanding_codes_consumed(
        self, db_session, test_account, other_account
    ):
        await _issue(db_session, test_account, code="111111")
        await _issue(db_session, test_account, code="222222")
        await _issue(db_session, other_account, code="333333")

        invalidated = await one_time_code_db.invalidate_previous(
            db_session, test_account.id, PURPOSE
        )

        assert invalidated == 2
        assert (
            await one_time_code_db.find_active(
                db_session, test_account.id, "111111", PURPOSE
            )
            is None
        )
        assert (
            await one_time_code_db.find_active(
                db_session, other_account.id, "333333", PURPOSE
            )
            is not None
        )


class TestSweep:

    async def test_removes_consumed_and_expired_only(self, db_session, test_account):
        now = _now()
        live = await _issue(db_session, test_account, code="111111")
        expired = await _issue(
            db_session,
            test_account,
            code="222222",
            expires_at=now - timedelta(minutes=1),
        )
        consumed = await _issue(db_session, test_account, code="333333")
        await one_time_code_db.consume(db_session, consumed.id)

        deleted = await one_time_code_db.sweep(db_session, now=now)

        assert deleted == 2
        remaining = (await db_session.execute(select(OneTimeCode.id))).scalars().all()
        assert remaining == [live.id]
        assert expired.id not in remaining

    async def test_sweep_keeps_verification_results(self, db_session, test_account):
        await _issue(db_session, test_account, code="111111")

        await one_time_code_db.sweep(db_session)

        assert (
            await one_time_code_db.find_active(
                db_session, test_account.id, "111111", PURPOSE
            )
            is not None
        )
