"""Progress events emitted by polynomial estimators.

An estimator accepts an optional ``listener``: any callable taking a single
:class:`EstimationEvent`. Linear fitters emit ``START`` and ``END``; robust
fitters additionally emit ``ITERATION`` after every sampling iteration and
``PROGRESS`` whenever the completed fraction advances by more than the
configured progress delta.

:class:`EventRecorder` is a ready-made listener that buffers events so they
can be inspected or drained after (or during) an estimation.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional

__all__ = ["EventKind", "EstimationEvent", "EventRecorder", "Listener"]


class EventKind(enum.Enum):
    """Kinds of events emitted during an estimation."""

    START = "start"
    ITERATION = "iteration"
    PROGRESS = "progress"
    END = "end"


@dataclass(frozen=True)
class EstimationEvent:
    """A single notification from an estimator.

    Attributes:
        kind: What happened.
        estimator: The estimator that emitted the event. It is locked while
            the estimation runs, so mutating it from a listener raises
            :class:`~polykit.exceptions.LockedError`.
        iteration: Iteration number for ``ITERATION`` events, else ``None``.
        progress: Fraction in ``[0, 1]`` for ``PROGRESS`` events, else ``None``.
    """

    kind: EventKind
    estimator: Any
    iteration: Optional[int] = None
    progress: Optional[float] = None


Listener = Callable[[EstimationEvent], None]


class EventRecorder:
    """Listener that stores every event it receives."""

    def __init__(self, kinds=None):
        """Initializes the recorder.

        Args:
            kinds: Optional iterable of :class:`EventKind` to keep; other
                kinds are ignored. ``None`` keeps everything.
        """
        self.kinds = None if kinds is None else frozenset(kinds)
        self.events: list[EstimationEvent] = []

    def __call__(self, event: EstimationEvent) -> None:
        if self.kinds is None or event.kind in self.kinds:
            self.events.append(event)

    def __iter__(self) -> Iterator[EstimationEvent]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def of_kind(self, kind: EventKind) -> list[EstimationEvent]:
        """Returns the recorded events of one kind, in emission order."""
        return [e for e in self.events if e.kind is kind]

    def drain(self) -> list[EstimationEvent]:
        """Returns all buffered events and clears the buffer."""
        out, self.events = self.events, []
        return out
