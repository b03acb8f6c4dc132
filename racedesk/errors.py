"""Error taxonomy for reconciliation and valuation.

Only ``MissingRequiredField`` and ``ProviderError`` are raised. Everything
else is an outcome: collected as a ``RecordIssue`` on the race it belongs to
so one bad record (or one bad race) never unwinds a whole batch.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RaceDeskError(Exception):
    """Base exception for racedesk."""

    pass


class MissingRequiredField(RaceDeskError):
    """A record lacks track, race number or horse identity."""

    def __init__(self, field_name: str, record=None):
        self.field_name = field_name
        self.record = record
        super().__init__(f"record is missing required field '{field_name}'")


class ProviderError(RaceDeskError):
    """An upstream provider fetch failed."""

    pass


class IssueKind(str, Enum):
    UNRESOLVED = "unresolved"  # no candidate matched
    AMBIGUOUS = "ambiguous"  # several candidates matched, none picked
    MISSING_FIELD = "missing_field"  # rejected before matching
    STALE_OVERWRITE = "stale_overwrite"  # tried to change a finalized field
    FAILED = "failed"  # unexpected error while processing a race


@dataclass(frozen=True)
class RecordIssue:
    """A record the pipeline could not apply, with enough context to chase it."""

    kind: IssueKind
    stage: str  # "reconcile", "scratching", "result", "provider"
    provider: Optional[str] = None
    horse_name: Optional[str] = None
    tab_number: Optional[int] = None
    detail: str = ""

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "stage": self.stage,
            "provider": self.provider,
            "horse_name": self.horse_name,
            "tab_number": self.tab_number,
            "detail": self.detail,
        }
