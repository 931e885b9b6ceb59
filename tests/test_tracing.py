"""Tests for toolexec.tracing (Tracer, Span)."""

from __future__ import annotations

import logging

import pytest

from toolexec.session.wire import EventType, Wire
from toolexec.tracing import MAX_FINISHED_SPANS, Tracer


class TestTracer:
    async def test_span_closed_on_return(self) -> None:
        tracer = Tracer()
        async with tracer.span("op", {"type": "tool-call"}) as span:
            span.input = {"x": 1}
            span.output = "done"
            assert not span.closed

        assert span.closed
        assert span.duration_ms is not None and span.duration_ms >= 0
        assert list(tracer.finished) == [span]

    async def test_span_closed_on_exception(self) -> None:
        tracer = Tracer()
        with pytest.raises(RuntimeError):
            async with tracer.span("op") as span:
                raise RuntimeError("bad")

        assert span.closed
        assert isinstance(span.error, RuntimeError)

    async def test_explicit_error_not_overwritten(self) -> None:
        tracer = Tracer()
        first = ValueError("first")
        with pytest.raises(KeyError):
            async with tracer.span("op") as span:
                span.error = first
                raise KeyError("second")

        assert span.error is first

    async def test_finished_is_bounded(self) -> None:
        tracer = Tracer()
        for _ in range(MAX_FINISHED_SPANS + 5):
            async with tracer.span("op"):
                pass
        assert len(tracer.finished) == MAX_FINISHED_SPANS

    async def test_span_end_published(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        tracer = Tracer(wire=wire)

        async with tracer.span("op", {"type": "tool-call"}):
            pass

        event = q.get_nowait()
        assert event.type == EventType.SPAN_END
        assert event.data["name"] == "op"
        assert event.data["attributes"] == {"type": "tool-call"}
        assert event.data["error"] is None

    async def test_dev_tracing_logs_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        tracer = Tracer(enabled=True)
        with caplog.at_level(logging.INFO, logger="toolexec.tracing"):
            async with tracer.span("visible"):
                pass
        assert any("span visible" in r.getMessage() for r in caplog.records)
