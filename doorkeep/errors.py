"""Error taxonomy for doorkeep.

Every failure the pipeline can hit maps to one of these exceptions. Component
errors are collected by the orchestrator and re-raised together as
:class:`RunFailed` at the end of an invocation.
"""

from __future__ import annotations

from typing import Any, List, Optional


class DoorkeepError(Exception):
    """Base class for all doorkeep errors."""

    kind = "doorkeep"

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class FetchError(DoorkeepError):
    """The search provider was unreachable or returned an invalid payload."""

    kind = "fetch"

    def __init__(self, query: str, message: str):
        self.query = query
        super().__init__(message)

    def __str__(self) -> str:
        return f"query {self.query!r}: {self.message}"


class StoreUnavailable(DoorkeepError):
    """Transient store failure; the whole batch can be retried later."""

    kind = "store_unavailable"


class StoreCorrupt(DoorkeepError):
    """A stored record for an existing key cannot be read back."""

    kind = "store_corrupt"


class StoreRejected(DoorkeepError):
    """The store refused a record it can never hold; retrying will not help."""

    kind = "store_rejected"


class NotifyFailed(DoorkeepError):
    """Delivery to the notification channel failed after the record was committed."""

    kind = "notify"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RunFailed(DoorkeepError):
    """Aggregate failure of one invocation."""

    kind = "run"

    def __init__(self, errors: List[Any]):
        self.errors = list(errors)
        summary = "; ".join(str(e) for e in self.errors[:5])
        if len(self.errors) > 5:
            summary += f"; ... ({len(self.errors) - 5} more)"
        super().__init__(f"{len(self.errors)} error(s) during run: {summary}")


class ConfigError(DoorkeepError):
    """The configuration is incomplete or inconsistent."""

    kind = "config"

    def __init__(self, issues: List[str]):
        self.issues = list(issues)
        super().__init__("Configuration validation failed: " + "; ".join(self.issues))
