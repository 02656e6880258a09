"""Roster resolution: bind organizer-typed names to participant records.

Each submitted entry is matched against ``gymnast`` accounts. A match reuses
(or creates) the participant record linked to that account; no match
provisions an unlinked record scoped to the session's competition. Every
resolved entry ends with exactly one session attachment. An entry that fails
validation or storage is reported as failed and never aborts the rest of the
batch.

Matching is exact and case-sensitive, and several accounts sharing a name
resolve to the lowest account id without asking anyone. That policy lives in
``ExactNameMatcher``; pass another ``IdentityMatcher`` to change it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Protocol, Sequence, Union

from .approval import participant_approved
from .errors import ValidationError
from .store import ScoreStore
from .types import Account, ParticipantRecord, Session

logger = logging.getLogger(__name__)


ResolutionOutcome = Literal["matched", "provisioned", "failed"]


@dataclass(frozen=True)
class RosterEntry:
    first_name: str
    last_name: str
    club_name: str
    level: str


@dataclass(frozen=True)
class EntryResolution:
    index: int
    # None when the submitted entry failed validation
    entry: Optional[RosterEntry]
    outcome: ResolutionOutcome
    participant: Optional[ParticipantRecord] = None
    account_id: Optional[str] = None
    # Number of accounts that matched; >1 means the first one was picked.
    candidates: int = 0
    detail: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.outcome == "matched"


@dataclass(frozen=True)
class RosterResolution:
    session_id: int
    entries: tuple[EntryResolution, ...]

    @property
    def participant_ids(self) -> tuple[int, ...]:
        return tuple(e.participant.id for e in self.entries if e.participant is not None)

    @property
    def matched_count(self) -> int:
        return sum(1 for e in self.entries if e.outcome == "matched")

    @property
    def provisioned_count(self) -> int:
        return sum(1 for e in self.entries if e.outcome == "provisioned")

    @property
    def failed_count(self) -> int:
        return sum(1 for e in self.entries if e.outcome == "failed")


class IdentityMatcher(Protocol):
    def candidates(self, entry: RosterEntry, accounts: Sequence[Account]) -> list[Account]:
        """Return matching accounts, best first."""
        ...


class ExactNameMatcher:
    """Case-sensitive first+last name equality, ordered by account id."""

    def candidates(self, entry: RosterEntry, accounts: Sequence[Account]) -> list[Account]:
        found = [
            account
            for account in accounts
            if account.first_name == entry.first_name and account.last_name == entry.last_name
        ]
        return sorted(found, key=lambda account: account.id)


def _linked_record(store: ScoreStore, account: Account, entry: RosterEntry) -> ParticipantRecord:
    """Return the account's participant record, creating it on first competition."""
    first = account.first_name or entry.first_name
    last = account.last_name or entry.last_name
    existing = [
        record
        for record in store.get_participants_by_name(first, last)
        if record.account_id == account.id
    ]
    if existing:
        return min(existing, key=lambda record: record.id)
    logger.info(f"Creating participant record for account {account.id}")
    return store.create_participant(
        first_name=first,
        last_name=last,
        club_name=entry.club_name,
        level=entry.level,
        approved=participant_approved(account),
        account_id=account.id,
    )


def _resolve_entry(
    store: ScoreStore,
    session: Session,
    index: int,
    entry: RosterEntry,
    accounts: Sequence[Account],
    matcher: IdentityMatcher,
) -> EntryResolution:
    found = matcher.candidates(entry, accounts)
    if found:
        account = found[0]
        if len(found) > 1:
            logger.warning(
                f"Roster entry {index} ({entry.first_name} {entry.last_name}) matched "
                f"{len(found)} accounts; binding to {account.id}"
            )
        record = _linked_record(store, account, entry)
        store.attach_participant_to_session(session.id, record.id)
        return EntryResolution(
            index=index,
            entry=entry,
            outcome="matched",
            participant=record,
            account_id=account.id,
            candidates=len(found),
        )

    record = store.create_participant(
        first_name=entry.first_name,
        last_name=entry.last_name,
        club_name=entry.club_name,
        level=entry.level,
        approved=participant_approved(None),
        competition_id=session.competition_id,
    )
    store.attach_participant_to_session(session.id, record.id)
    logger.debug(f"Provisioned participant {record.id} for session {session.id}")
    return EntryResolution(index=index, entry=entry, outcome="provisioned", participant=record)


def resolve_roster(
    store: ScoreStore,
    session: Session,
    entries: Sequence[Union[RosterEntry, ValidationError]],
    *,
    matcher: Optional[IdentityMatcher] = None,
) -> RosterResolution:
    """Resolve every entry independently and attach the results to ``session``.

    Entries that already failed validation are passed in as their
    ``ValidationError`` and reported as ``failed`` in place.
    """
    matcher = matcher or ExactNameMatcher()
    accounts = store.get_accounts_by_role("gymnast")
    resolved: list[EntryResolution] = []
    for index, entry in enumerate(entries):
        if isinstance(entry, ValidationError):
            resolved.append(
                EntryResolution(
                    index=index,
                    entry=None,
                    outcome="failed",
                    detail=f"{entry.field}: {entry.constraint}",
                )
            )
            continue
        try:
            resolved.append(_resolve_entry(store, session, index, entry, accounts, matcher))
        except Exception as exc:
            # Storage errors are reported per entry; the batch carries on.
            logger.exception(f"Roster entry {index} failed for session {session.id}")
            resolved.append(
                EntryResolution(index=index, entry=entry, outcome="failed", detail=str(exc))
            )
    logger.info(
        f"Resolved roster for session {session.id}: "
        f"{sum(1 for r in resolved if r.outcome == 'matched')} matched, "
        f"{sum(1 for r in resolved if r.outcome == 'provisioned')} provisioned, "
        f"{sum(1 for r in resolved if r.outcome == 'failed')} failed"
    )
    return RosterResolution(session_id=session.id, entries=tuple(resolved))
