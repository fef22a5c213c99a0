from __future__ import annotations

from typing import Any

import pytest

from paddock.workers import enqueue
from paddock.workers.tasks import notifications


def test_send_checkout_emails_task_wrapper(monkeypatch) -> None:
    async def fake_send(payload: dict[str, Any]) -> dict[str, bool]:
        return {"purchase": payload["cart_id"] == 5}

    monkeypatch.setattr(notifications, "send_checkout_emails", fake_send)

    result = notifications.send_checkout_emails_task({"cart_id": 5, "lines": []})
    assert result == {"purchase": True}


def test_forward_contact_message_task_wrapper(monkeypatch) -> None:
    seen: dict[str, Any] = {}

    async def fake_forward(**kwargs: Any) -> bool:
        seen.update(kwargs)
        return True

    monkeypatch.setattr(notifications, "forward_contact_message", fake_forward)

    assert notifications.forward_contact_message_task("Sam", "sam@example.com", "Hi") is True
    assert seen == {"name": "Sam", "email": "sam@example.com", "message": "Hi", "phone": None}


class _RecordingTask:
    def __init__(self, *, fail: bool = False) -> None:
        self.calls: list[dict[str, Any]] = []
        self._fail = fail

    def delay(self, **kwargs: Any) -> None:
        if self._fail:
            raise ConnectionError("broker down")
        self.calls.append(kwargs)


@pytest.mark.asyncio
async def test_enqueue_task_passes_kwargs() -> None:
    task = _RecordingTask()

    assert await enqueue.enqueue_task(task, event="test", payload={"cart_id": 1}) is True
    assert task.calls == [{"payload": {"cart_id": 1}}]


@pytest.mark.asyncio
async def test_enqueue_task_swallows_broker_failure() -> None:
    task = _RecordingTask(fail=True)

    assert await enqueue.enqueue_task(task, event="test", payload={}) is False
