"""Entity definitions for accounts, competitions, rosters and scores."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal, Optional


Role = Literal["observer", "judge", "club", "admin", "gymnast"]
EventStatus = Literal["upcoming", "live", "completed"]

ROLES: tuple[Role, ...] = ("observer", "judge", "club", "admin", "gymnast")
EVENT_STATUSES: tuple[EventStatus, ...] = ("upcoming", "live", "completed")


@dataclass(frozen=True)
class Account:
    """A registered user. Profile fields are only populated for their role."""

    id: str
    role: Role
    approved: bool
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    # judge
    judge_id: Optional[str] = None
    display_name: Optional[str] = None
    # club
    club_name: Optional[str] = None
    club_username: Optional[str] = None
    location: Optional[str] = None
    # gymnast
    club_affiliation: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Competition:
    id: int
    name: str
    venue: str
    start_date: date
    end_date: date
    created_by: str
    description: Optional[str] = None
    # Explicit status set by an organizer; wins over the date-derived value.
    status_override: Optional[EventStatus] = None


@dataclass(frozen=True)
class Session:
    id: int
    competition_id: int
    name: str
    date: date
    start_time: time
    end_time: time
    level: str
    status_override: Optional[EventStatus] = None


@dataclass(frozen=True)
class ParticipantRecord:
    """A roster entry.

    ``account_id`` is a weak reference to a ``gymnast`` account (lookup only).
    Records without one are provisional and belong to ``competition_id``.
    """

    id: int
    first_name: str
    last_name: str
    club_name: str
    level: str
    approved: bool = True
    account_id: Optional[str] = None
    competition_id: Optional[int] = None
    date_of_birth: Optional[date] = None

    @property
    def is_provisional(self) -> bool:
        return self.account_id is None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class ScoreEntry:
    id: int
    session_id: int
    participant_id: int
    apparatus_id: int
    judge_account_id: str
    difficulty: Decimal
    execution: Decimal
    deductions: Decimal
    final: Decimal
    created_at: datetime
    notes: Optional[str] = None


@dataclass(frozen=True)
class Apparatus:
    id: int
    name: str
    code: str


APPARATUS_CATALOG: tuple[Apparatus, ...] = (
    Apparatus(id=1, name="Floor", code="FX"),
    Apparatus(id=2, name="Vault", code="VT"),
    Apparatus(id=3, name="Bars", code="UB"),
    Apparatus(id=4, name="Beam", code="BB"),
)

APPARATUS_BY_ID: dict[int, Apparatus] = {item.id: item for item in APPARATUS_CATALOG}


def get_apparatus(apparatus_id: int) -> Apparatus:
    """Look up a catalog apparatus, raising ValueError for unknown ids."""
    try:
        return APPARATUS_BY_ID[apparatus_id]
    except (KeyError, TypeError):
        raise ValueError(f"unknown apparatus id: {apparatus_id!r}") from None
