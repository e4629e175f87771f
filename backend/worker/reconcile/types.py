from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from worker.jobs import CleanupJob


@dataclass
class CleanupResult:
    """What one reconciler did for one job."""

    reconciler: str
    released_card_ids: list[int] = field(default_factory=list)
    discarded_fields: list[str] = field(default_factory=list)  # owned card map fields that were not card ids
    remaining_members: int | None = None  # live room size after removal; None if never reached
    round_ended: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Reconciler(Protocol):
    async def reconcile(self, job: CleanupJob) -> CleanupResult: ...
