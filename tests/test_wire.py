"""Tests for toolexec.session.wire (Wire, WireEvent, EventType)."""

from __future__ import annotations

import asyncio

from toolexec.session.wire import EventType, Wire, WireEvent


# ---------------------------------------------------------------------------
# EventType
# ---------------------------------------------------------------------------


class TestEventType:
    def test_all_variants_exist(self) -> None:
        expected = {
            "TOOL_CALL_UPDATE",
            "TOOL_OUTPUT",
            "TOOL_OUTPUT_TRUNCATED",
            "SPAN_END",
            "ERROR",
            "STATUS",
        }
        assert {e.name for e in EventType} == expected

    def test_values_are_lowercase(self) -> None:
        for e in EventType:
            assert e.value == e.name.lower()


# ---------------------------------------------------------------------------
# Wire: basic send/subscribe
# ---------------------------------------------------------------------------


class TestWire:
    def test_send_to_subscriber(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.send_status("hi")
        event = q.get_nowait()
        assert event is not None
        assert event.type == EventType.STATUS
        assert event.data["message"] == "hi"

    def test_send_to_multiple_subscribers(self) -> None:
        wire = Wire()
        q1 = wire.subscribe()
        q2 = wire.subscribe()
        wire.send_error("bad")
        e1 = q1.get_nowait()
        e2 = q2.get_nowait()
        assert e1 is not None and e2 is not None
        assert e1.type == e2.type == EventType.ERROR

    def test_tool_output(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.send_tool_output("c1", "chunk")
        event = q.get_nowait()
        assert event.type == EventType.TOOL_OUTPUT
        assert event.data == {"call_id": "c1", "chunk": "chunk"}

    def test_tool_call_update(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.send_tool_call_update("c1", "executing", pid=123)
        event = q.get_nowait()
        assert event.type == EventType.TOOL_CALL_UPDATE
        assert event.data == {"call_id": "c1", "status": "executing", "pid": 123}

    def test_unsubscribe(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.unsubscribe(q)
        wire.send(WireEvent(type=EventType.STATUS))
        assert q.empty()

    def test_unsubscribe_nonexistent_is_safe(self) -> None:
        wire = Wire()
        q: asyncio.Queue[WireEvent | None] = asyncio.Queue()
        wire.unsubscribe(q)


# ---------------------------------------------------------------------------
# Wire: closed-state guard
# ---------------------------------------------------------------------------


class TestWireClosedGuard:
    def test_send_after_close_is_dropped(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.close()
        assert q.get_nowait() is None
        wire.send_status("too late")
        assert q.empty()

    def test_close_sends_sentinel_to_all_subscribers(self) -> None:
        wire = Wire()
        queues = [wire.subscribe() for _ in range(3)]
        wire.close()
        for q in queues:
            assert q.get_nowait() is None

    def test_close_idempotent(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.close()
        wire.close()
        assert q.get_nowait() is None
        assert q.empty()
