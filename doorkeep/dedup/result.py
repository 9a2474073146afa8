"""Data classes for deduplication results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from doorkeep.models import ResultKey, StoredRecord


@dataclass
class ProcessError:
    """A store failure for one result.

    Attributes:
        key: Identity of the result that could not be classified.
        cause: The store exception (``StoreUnavailable`` or ``StoreCorrupt``).
    """

    key: ResultKey
    cause: Exception

    def __str__(self) -> str:
        return f"{self.key}: {self.cause}"


@dataclass
class DedupOutcome:
    """Classification of one batch.

    Attributes:
        new_records: Records committed by this call, in batch order.
        seen: Keys that were already stored (or lost a concurrent race).
        errors: Per-result store failures; those results are neither NEW nor
            committed by this call.
    """

    new_records: List[StoredRecord] = field(default_factory=list)
    seen: List[ResultKey] = field(default_factory=list)
    errors: List[ProcessError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
