"""Notification dispatch to the status API and dashboard sinks."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from sofaci.core.errors import NotificationSinkUnreachable
from sofaci.core.log import logger
from sofaci.notify.sinks import Sink, SinkKind
from sofaci.state.counts import SceneCounts, TestCounts
from sofaci.state.status import BuildStatus

# Delivery order when broadcasting one event
SINK_ORDER = (SinkKind.STATUS_API, SinkKind.DASHBOARD)


class Event(str, Enum):
    """Pipeline events, each reported at most once per sink."""

    PIPELINE_START = "pipeline-start"
    COMPILE_RESULT = "compile-result"
    TEST_RESULT = "test-result"
    SCENE_RESULT = "scene-result"
    FINAL_STATUS = "final-status"


class Delivery(BaseModel):
    """Record of one notify() call."""

    sink: SinkKind
    event: Event | None
    status: BuildStatus | None
    message: str
    fields: dict[str, str] = Field(default_factory=dict)
    delivered: bool
    timestamp: datetime = Field(default_factory=datetime.now)


def final_message(
    tests: TestCounts | None = None,
    scenes: SceneCounts | None = None,
) -> str:
    """Human-readable text for a successful run.

    Test and scene problems are appended to the message only; they do
    not change the reported status.
    """
    if tests is None and scenes is None:
        return "SUCCESS (tests ignored)"

    problems = []
    if tests is not None and tests.problems:
        problems.append(f"{tests.problems} unit-test problems")
    if scenes is not None and scenes.problems:
        problems.append(f"{scenes.problems} scene-test problems")
    if problems:
        return f"SUCCESS ({', '.join(problems)})"
    return "SUCCESS"


class NotificationDispatcher:
    """Sends pipeline events to independent sinks.

    - an event reaches each sink at most once; repeats are dropped
    - a sink failing never stops delivery to the other one
    - delivery failures are logged, never raised
    """

    def __init__(self, sinks: Mapping[SinkKind, Sink]):
        self.sinks = dict(sinks)
        self.deliveries: list[Delivery] = []
        self._sent: set[tuple[SinkKind, Event]] = set()

    def bind_revision(self, revision: str | None) -> None:
        for sink in self.sinks.values():
            sink.bind_revision(revision)

    def notify(
        self,
        sink: SinkKind,
        status: BuildStatus | None,
        message: str,
        extra_fields: Mapping[str, str] | None = None,
        event: Event | None = None,
    ) -> bool:
        """Deliver one notification to one sink.

        Returns:
            True if the sink accepted it

        Raises:
            ValueError: For the Ignored status, which is never reported
        """
        if status is BuildStatus.IGNORED:
            raise ValueError("ignored builds are not reported")

        if event is not None:
            if (sink, event) in self._sent:
                logger.warning(
                    f"Dropping repeated {event.value} notification "
                    f"for {sink.value}"
                )
                return False
            self._sent.add((sink, event))

        fields = dict(extra_fields or {})
        target = self.sinks.get(sink)
        delivered = False
        if target is None:
            logger.debug(f"No {sink.value} sink configured")
        else:
            try:
                target.send(status, message, fields)
                delivered = True
            except NotificationSinkUnreachable as e:
                logger.warning(f"Notification not delivered: {e}")
            except Exception as e:
                logger.error(
                    f"{sink.value} sink failed, notification not delivered",
                    _exc_info=e,
                )

        self.deliveries.append(Delivery(
            sink=sink,
            event=event,
            status=status,
            message=message,
            fields=fields,
            delivered=delivered,
        ))
        return delivered

    def broadcast(
        self,
        event: Event,
        status: BuildStatus,
        message: str,
        extra_fields: Mapping[str, str] | None = None,
    ) -> None:
        """Send one event to every sink."""
        logger.info(f"Notify {event.value}: {status.value} - {message}")
        for sink in SINK_ORDER:
            self.notify(sink, status, message, extra_fields, event=event)

    def update_dashboard(self, **fields: str) -> bool:
        """Informational dashboard fields outside of any event."""
        return self.notify(
            SinkKind.DASHBOARD, None, "",
            {k: str(v) for k, v in fields.items()},
        )

    def events(self, sink: SinkKind) -> list[Delivery]:
        """Event deliveries made to one sink, in order."""
        return [
            d for d in self.deliveries
            if d.sink == sink and d.event is not None
        ]
