"""Build notifications."""

from __future__ import annotations

import requests

from sofaci.core.config import Config
from sofaci.notify.dispatcher import (
    Event,
    NotificationDispatcher,
    final_message,
)
from sofaci.notify.sinks import DashboardSink, SinkKind, StatusApiSink
from sofaci.state.target import BuildTarget


def create_dispatcher(
    target: BuildTarget,
    config: Config,
    session: requests.Session | None = None,
) -> NotificationDispatcher:
    """Dispatcher wired to both sinks, sharing one HTTP session."""
    session = session or requests.Session()
    return NotificationDispatcher({
        SinkKind.STATUS_API: StatusApiSink(config.status_api, target, session),
        SinkKind.DASHBOARD: DashboardSink(config.dashboard, target, session),
    })


__all__ = [
    "DashboardSink",
    "Event",
    "NotificationDispatcher",
    "SinkKind",
    "StatusApiSink",
    "create_dispatcher",
    "final_message",
]
