"""Session plumbing: the event wire between executor and observers."""

from toolexec.session.wire import EventType, Wire, WireEvent

__all__ = ["EventType", "Wire", "WireEvent"]
