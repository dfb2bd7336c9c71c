"""Notification sinks: commit status API and build dashboard."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

import requests

from sofaci.core.config import DashboardConfig, StatusApiConfig
from sofaci.core.errors import NotificationSinkUnreachable
from sofaci.core.log import logger
from sofaci.state.status import BuildStatus
from sofaci.state.target import BuildTarget


class SinkKind(str, Enum):
    STATUS_API = "status-api"
    DASHBOARD = "dashboard"


# GitHub only knows pending/success/failure/error
STATUS_API_STATES = {
    BuildStatus.PENDING: "pending",
    BuildStatus.BUILDING: "pending",
    BuildStatus.SUCCESS: "success",
    BuildStatus.FAILURE: "failure",
    BuildStatus.ERROR: "error",
    BuildStatus.ABORTED: "failure",
}

DASHBOARD_STATES = {
    BuildStatus.PENDING: "build",
    BuildStatus.BUILDING: "build",
    BuildStatus.SUCCESS: "success",
    BuildStatus.FAILURE: "fail",
    BuildStatus.ERROR: "fail",
    BuildStatus.ABORTED: "cancel",
}

# GitHub rejects longer status descriptions
MAX_DESCRIPTION = 140


class Sink(ABC):
    """A destination for build notifications."""

    kind: SinkKind

    def bind_revision(self, revision: str | None) -> None:
        """Attach the commit the run is building."""
        self.revision = revision

    @abstractmethod
    def send(
        self,
        status: BuildStatus | None,
        message: str,
        fields: dict[str, str],
    ) -> None:
        """Deliver one notification.

        Args:
            status: Status to report, or None for a field-only update
            message: Human-readable text
            fields: Extra key/value data

        Raises:
            NotificationSinkUnreachable: If delivery failed
        """


class StatusApiSink(Sink):
    """Posts commit statuses (state + description) for one revision."""

    kind = SinkKind.STATUS_API

    def __init__(
        self,
        config: StatusApiConfig,
        target: BuildTarget,
        session: requests.Session | None = None,
    ):
        self.config = config
        self.target = target
        self.session = session or requests.Session()
        self.revision = None

    @property
    def context(self) -> str:
        target = self.target
        return self.config.context.format(
            name=target.name,
            platform=target.platform,
            compiler=target.compiler,
            architecture=target.architecture,
            build_type=target.build_type,
        )

    def payload(self, status: BuildStatus, message: str) -> dict[str, str]:
        payload = {
            "state": STATUS_API_STATES[status],
            "description": message[:MAX_DESCRIPTION],
            "context": self.context,
        }
        if self.target.job_url:
            payload["target_url"] = self.target.job_url
        return payload

    def send(self, status, message, fields):
        if status is None:
            return
        payload = self.payload(status, message)

        if not self.config.enabled:
            logger.info("Status API disabled, not posting", **payload)
            return
        if not self.revision:
            raise NotificationSinkUnreachable(
                self.kind.value, "no revision to attach the status to"
            )

        url = (
            f"{self.config.api_url.rstrip('/')}/repos/"
            f"{self.config.repository}/statuses/{self.revision}"
        )
        headers = {"Accept": "application/vnd.github+json"}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"

        logger.debug("Posting commit status", url=url, **payload)
        try:
            response = self.session.post(
                url, json=payload, headers=headers,
                timeout=self.config.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise NotificationSinkUnreachable(self.kind.value, str(e)) from e


class DashboardSink(Sink):
    """Posts key=value fields; fields accumulate over the run."""

    kind = SinkKind.DASHBOARD

    def __init__(
        self,
        config: DashboardConfig,
        target: BuildTarget,
        session: requests.Session | None = None,
    ):
        self.config = config
        self.target = target
        self.session = session or requests.Session()
        self.revision = None
        self.fields: dict[str, str] = {}

    def identity(self) -> dict[str, str]:
        """Fields identifying the build on every post."""
        target = self.target
        identity = {
            "config": target.name,
            "platform": target.platform,
            "compiler": target.compiler,
            "architecture": target.architecture,
            "build_type": target.build_type,
            "build_options": target.describe_options(),
        }
        if self.revision:
            identity["sha"] = self.revision
        if target.job_url:
            identity["build_url"] = target.job_url
        return identity

    def send(self, status, message, fields):
        # Accumulate first: a later post must never drop earlier counts
        self.fields.update(fields)
        if status is not None:
            self.fields["status"] = DASHBOARD_STATES[status]
        if message:
            self.fields["message"] = message

        data = {**self.identity(), **self.fields}
        if not self.config.enabled:
            logger.info("Dashboard disabled, not posting", **data)
            return

        logger.debug("Posting to dashboard", url=self.config.url, **data)
        try:
            response = self.session.post(
                self.config.url, data=data, timeout=self.config.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise NotificationSinkUnreachable(self.kind.value, str(e)) from e
