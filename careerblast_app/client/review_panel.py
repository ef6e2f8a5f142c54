"""
Presentation model for the admin recruiter review screen.

Holds the listing, filter, stats and the pending rejection reason. Decisions
are applied to the local row on success without reloading the list. Results
that arrive after ``close()`` are dropped.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Union

from . import errors
from .api_client import CareerBlastClient

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    "pending": "Pending",
    "under_review": "Under Review",
    "approved": "Approved",
    "rejected": "Rejected",
}

FILTERS = ("all", "pending", "under_review", "approved", "rejected")


def _as_datetime(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)


def time_ago(value: Union[str, datetime], now: datetime) -> str:
    seconds = max(0, int((now - _as_datetime(value)).total_seconds()))
    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    days = hours // 24
    return f"{days} day{'s' if days != 1 else ''} ago"


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status.replace("_", " ").title())


class ReviewPanel:
    def __init__(self, client: CareerBlastClient, status_filter: str = "pending"):
        self.client = client
        self.status_filter = status_filter
        self.applications: List[Dict[str, Any]] = []
        self.total = 0
        self.stats: Optional[Dict[str, Any]] = None
        self.rejection_reason = ""
        self.error: Optional[str] = None
        self.needs_reconciliation: Set[int] = set()
        self.closed = False
        self._generation = 0

    # -------------------------------------------------------------------------
    # loading
    # -------------------------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        return not self.closed and generation == self._generation

    def load(self) -> bool:
        generation = self._generation
        try:
            total, applications = self.client.list_applications(self.status_filter)
        except errors.ClientError as e:
            if self._is_current(generation):
                self.error = e.message
            return False
        if not self._is_current(generation):
            logger.debug("Discarding stale application list")
            return False
        self.total, self.applications = total, applications
        return True

    def load_stats(self) -> bool:
        generation = self._generation
        try:
            stats = self.client.recruiter_stats()
        except errors.ClientError as e:
            if self._is_current(generation):
                self.error = e.message
            return False
        if not self._is_current(generation):
            return False
        self.stats = stats
        return True

    def set_filter(self, status_filter: str) -> bool:
        if status_filter not in FILTERS:
            raise ValueError(f"Unknown filter: {status_filter}")
        self.status_filter = status_filter
        self._generation += 1
        return self.load()

    def close(self) -> None:
        self.closed = True
        self._generation += 1

    # -------------------------------------------------------------------------
    # decisions
    # -------------------------------------------------------------------------

    @property
    def can_reject(self) -> bool:
        return bool(self.rejection_reason.strip())

    def row(self, application_id: int) -> Optional[Dict[str, Any]]:
        for application in self.applications:
            if application["id"] == application_id:
                return application
        return None

    def approve(self, application_id: int, notes: Optional[str] = None) -> bool:
        return self._decide(application_id, lambda: self.client.approve(application_id, notes))

    def reject(self, application_id: int) -> bool:
        if not self.can_reject:
            self.error = "Please provide a rejection reason"
            return False
        reason = self.rejection_reason.strip()
        if self._decide(application_id, lambda: self.client.reject(application_id, reason)):
            self.rejection_reason = ""
            return True
        return False

    def _decide(self, application_id: int, call) -> bool:
        generation = self._generation
        try:
            result = call()
        except errors.NotFoundError as e:
            if self._is_current(generation):
                self.error = e.message
                self.load()
            return False
        except errors.ReconciliationRequiredError as e:
            logger.error("Application %s needs reconciliation after a failed decision", application_id)
            if self._is_current(generation):
                self.needs_reconciliation.add(application_id)
                self.error = e.message
            return False
        except errors.ClientError as e:
            if self._is_current(generation):
                self.error = e.message
            return False

        if not self._is_current(generation):
            logger.debug("Discarding decision result for application %s", application_id)
            return False
        self.error = None
        self.needs_reconciliation.discard(application_id)
        row = self.row(application_id)
        if row is not None:
            for key in ("status", "reviewed_at", "approval_notes", "rejection_reason", "review_time_in_hours"):
                if key in result:
                    row[key] = result[key]
        return True
