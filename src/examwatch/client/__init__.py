"""Client - API client, exam session and polling for student and admin views."""

from examwatch.client.client import ProctorClient
from examwatch.client.exceptions import APIError, ClientError, NotFoundError, NotLoggedInError
from examwatch.client.models import ActivityRecord, StudentRecord, Verification
from examwatch.client.poller import PollJob, PullScheduler
from examwatch.client.session import ExamSession, RecordedEvent, format_elapsed, parse_elapsed
from examwatch.client.sync import (
    AdminMonitor,
    DashboardStats,
    MonitorSnapshot,
    RiskDistribution,
    StudentSync,
)

__all__ = [
    "APIError",
    "ActivityRecord",
    "AdminMonitor",
    "ClientError",
    "DashboardStats",
    "ExamSession",
    "MonitorSnapshot",
    "NotFoundError",
    "NotLoggedInError",
    "PollJob",
    "ProctorClient",
    "PullScheduler",
    "RecordedEvent",
    "RiskDistribution",
    "StudentRecord",
    "StudentSync",
    "Verification",
    "format_elapsed",
    "parse_elapsed",
]
