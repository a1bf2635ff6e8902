"""Tests for polykit.events."""

from __future__ import annotations

from polykit.events import EstimationEvent, EventKind, EventRecorder


def test_event_recorder_keeps_events_in_order():
    """Tests that the recorder buffers every event it receives."""
    rec = EventRecorder()
    rec(EstimationEvent(EventKind.START, None))
    rec(EstimationEvent(EventKind.ITERATION, None, iteration=1))
    rec(EstimationEvent(EventKind.END, None))

    assert len(rec) == 3
    assert [e.kind for e in rec] == [EventKind.START, EventKind.ITERATION, EventKind.END]
    assert rec.of_kind(EventKind.ITERATION)[0].iteration == 1


def test_event_recorder_filters_kinds():
    """Tests that a recorder built with kinds ignores the others."""
    rec = EventRecorder(kinds=[EventKind.PROGRESS])
    rec(EstimationEvent(EventKind.START, None))
    rec(EstimationEvent(EventKind.PROGRESS, None, progress=0.5))

    assert len(rec) == 1
    assert rec.events[0].progress == 0.5


def test_event_recorder_drain_empties_buffer():
    """Tests that drain returns buffered events and resets the recorder."""
    rec = EventRecorder()
    rec(EstimationEvent(EventKind.START, None))

    drained = rec.drain()
    assert [e.kind for e in drained] == [EventKind.START]
    assert len(rec) == 0
