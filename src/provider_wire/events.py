"""Action invocation event streams and cooperative cancellation.

An action reports its progress as a sequence of events: one
``StartedActionEvent``, any number of progress and diagnostics events, then
exactly one terminal event (finished or cancelled). ``ActionEventStream``
enforces that order over any producer iterator and turns a consumer's stop
request into a ``CancelledActionEvent`` at the next emission boundary.
"""

from __future__ import annotations

import threading
from enum import IntEnum
from typing import Annotated, Iterable, Iterator, Literal, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from provider_wire.diagnostics import Diagnostic
from provider_wire.dynamic_value import DynamicValue
from provider_wire.errors import ProviderWireError, StopRequested


class CancelType(IntEnum):
    SOFT = 0
    HARD = 1


class StopSignal:
    """A stop flag set by the consumer and polled by the producer."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.cancel_type = CancelType.SOFT

    def stop(self, cancel_type: CancelType = CancelType.SOFT) -> None:
        self.cancel_type = cancel_type
        self._event.set()

    @property
    def stopped(self) -> bool:
        return self._event.is_set()

    def check(self) -> None:
        """Raise ``StopRequested`` if the consumer asked to stop."""
        if self._event.is_set():
            raise StopRequested(f"stop requested ({self.cancel_type.name})")


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

class StartedActionEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["started"] = "started"
    cancellation_token: str = ""


class ProgressActionEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["progress"] = "progress"
    stdout: list[str] = Field(default_factory=list)
    stderr: list[str] = Field(default_factory=list)


class DiagnosticsActionEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["diagnostics"] = "diagnostics"
    diagnostics: list[Diagnostic] = Field(default_factory=list)


class FinishedActionEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["finished"] = "finished"
    outputs: dict[str, DynamicValue] = Field(default_factory=dict)
    resource_changes: dict[str, DynamicValue] = Field(default_factory=dict)


class CancelledActionEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["cancelled"] = "cancelled"


InvokeActionEvent = Annotated[
    Union[
        StartedActionEvent,
        ProgressActionEvent,
        DiagnosticsActionEvent,
        FinishedActionEvent,
        CancelledActionEvent,
    ],
    Field(discriminator="kind"),
]

_TERMINAL = (FinishedActionEvent, CancelledActionEvent)


# ---------------------------------------------------------------------------
# Stream
# ---------------------------------------------------------------------------

class ActionEventStream:
    """Ordered, cancellable view over an action's event producer.

    Iterating yields the producer's events after checking that the first is
    a ``StartedActionEvent`` and the last is terminal. If ``stop`` is set
    once the action has started, the stream closes the producer and yields a
    single ``CancelledActionEvent`` instead of the next event. A stop
    requested before the action started ends the stream with no events.
    """

    def __init__(self, producer: Iterable[object], stop: StopSignal | None = None) -> None:
        self._producer = producer
        self.stop_signal = stop or StopSignal()
        self.cancellation_token: str | None = None

    def cancel(self, cancel_type: CancelType = CancelType.SOFT) -> None:
        self.stop_signal.stop(cancel_type)

    def __iter__(self) -> Iterator[object]:
        source = iter(self._producer)
        started = False
        try:
            while not self.stop_signal.stopped:
                try:
                    event = next(source)
                except StopIteration:
                    break

                if not started:
                    if not isinstance(event, StartedActionEvent):
                        raise ProviderWireError(
                            f"first action event must be StartedActionEvent, got {type(event).__name__}"
                        )
                    started = True
                    self.cancellation_token = event.cancellation_token
                    logger.debug(f"action {event.cancellation_token!r} started")
                    yield event
                    continue

                if isinstance(event, StartedActionEvent):
                    raise ProviderWireError("StartedActionEvent emitted more than once")
                yield event
                if isinstance(event, _TERMINAL):
                    logger.debug(f"action {self.cancellation_token!r} ended with {type(event).__name__}")
                    return
        finally:
            close = getattr(source, "close", None)
            if close is not None:
                close()

        if not started:
            if not self.stop_signal.stopped:
                raise ProviderWireError("action event stream ended before a StartedActionEvent")
            return
        if self.stop_signal.stopped:
            logger.debug(f"action {self.cancellation_token!r} cancelled ({self.stop_signal.cancel_type.name})")
            yield CancelledActionEvent()
            return
        raise ProviderWireError("action event stream ended without a terminal event")
