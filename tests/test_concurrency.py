"""Конкурентные изменения: версия записи и уникальный email диалога."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.orm.exc import StaleDataError

from rescue.core.errors import ConflictError
from rescue.db.base import new_id, utcnow
from rescue.db.models import PaymentSubmission, SubmissionStatus
from rescue.services.chats import ChatService
from rescue.services.submissions import SubmissionService


async def _pending_submission(session_factory) -> str:
    now = utcnow()
    async with session_factory() as session:
        submission = PaymentSubmission(
            id=new_id(),
            name="Jane",
            email="jane@example.com",
            amount=Decimal("25.50"),
            status=SubmissionStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        session.add(submission)
        await session.commit()
        return submission.id


async def test_stale_submission_write_is_rejected(session_factory):
    submission_id = await _pending_submission(session_factory)

    async with session_factory() as first, session_factory() as second:
        mine = await first.get(PaymentSubmission, submission_id)
        theirs = await second.get(PaymentSubmission, submission_id)

        mine.status = SubmissionStatus.VERIFIED
        await first.commit()

        theirs.status = SubmissionStatus.REJECTED
        with pytest.raises(StaleDataError):
            await second.commit()

    async with session_factory() as session:
        stored = await session.get(PaymentSubmission, submission_id)
    assert stored.status is SubmissionStatus.VERIFIED
    assert stored.version == 2


async def test_stale_write_maps_to_409(client, monkeypatch, session_factory):
    submission_id = await _pending_submission(session_factory)
    monkeypatch.setattr(
        SubmissionService,
        "update_status",
        AsyncMock(side_effect=StaleDataError("UPDATE statement on table 'payment_submissions' expected to update 1 row(s); 0 were matched.")),
    )

    response = await client.put(f"/giftcard-submissions/{submission_id}", json={"status": "verified"})

    assert response.status_code == 409
    assert "error" in response.json()
    assert "modified concurrently" in response.json()["error"]


async def test_duplicate_first_message_is_conflict(session_factory, fanout, monkeypatch):
    async with session_factory() as session:
        await ChatService(session, fanout).post_message("Ann", "ann@example.com", "first")

    # Второй запрос не увидел диалог, созданный первым
    monkeypatch.setattr(ChatService, "find_by_email", AsyncMock(return_value=None))
    async with session_factory() as session:
        with pytest.raises(ConflictError):
            await ChatService(session, fanout).post_message("Ann", "ann@example.com", "second")

    await fanout.drain()


async def test_duplicate_first_message_returns_409(client, monkeypatch):
    assert (await client.post("/chat", json={"name": "Ann", "email": "ann@example.com", "message": "hi"})).status_code == 200
    monkeypatch.setattr(ChatService, "find_by_email", AsyncMock(return_value=None))

    response = await client.post("/chat", json={"name": "Ann", "email": "ann@example.com", "message": "again"})

    assert response.status_code == 409
    assert "error" in response.json()
    chats = (await client.get("/chat")).json()
    assert len(chats) == 1
    assert [m["text"] for m in chats[0]["messages"]] == ["hi"]
