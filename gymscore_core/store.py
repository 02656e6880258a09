"""Persistence port used by the action layer, plus an in-memory implementation.

The core never talks to a database directly. Embedders back ``ScoreStore``
with their own storage; ``InMemoryStore`` is the reference implementation
used in tests and local tooling.
"""
from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Callable, Optional, Protocol

from .types import (
    Account,
    Competition,
    ParticipantRecord,
    Role,
    ScoreEntry,
    Session,
)


class ScoreStore(Protocol):
    def get_accounts_by_role(self, role: Role) -> list[Account]:
        ...

    def get_account(self, account_id: str) -> Optional[Account]:
        ...

    def upsert_account(self, account: Account) -> Account:
        ...

    def delete_account(self, account_id: str) -> bool:
        """Delete an account; False when it no longer exists."""
        ...

    def get_participants_by_name(self, first_name: str, last_name: str) -> list[ParticipantRecord]:
        ...

    def get_participant(self, participant_id: int) -> Optional[ParticipantRecord]:
        ...

    def create_participant(
        self,
        *,
        first_name: str,
        last_name: str,
        club_name: str,
        level: str,
        approved: bool,
        account_id: Optional[str] = None,
        competition_id: Optional[int] = None,
    ) -> ParticipantRecord:
        ...

    def attach_participant_to_session(self, session_id: int, participant_id: int) -> None:
        """Link a participant to a session; linking an existing pair is a no-op."""
        ...

    def get_session_participants(self, session_id: int) -> list[ParticipantRecord]:
        ...

    def get_competition(self, competition_id: int) -> Optional[Competition]:
        ...

    def create_competition(
        self,
        *,
        name: str,
        venue: str,
        start_date: date,
        end_date: date,
        created_by: str,
        description: Optional[str] = None,
    ) -> Competition:
        ...

    def get_session(self, session_id: int) -> Optional[Session]:
        ...

    def create_session(
        self,
        *,
        competition_id: int,
        name: str,
        date: date,
        start_time: time,
        end_time: time,
        level: str,
    ) -> Session:
        ...

    def get_scores_for_session(self, session_id: int) -> list[ScoreEntry]:
        ...

    def get_scores_for_participant(self, participant_id: int) -> list[ScoreEntry]:
        ...

    def create_score(
        self,
        *,
        session_id: int,
        participant_id: int,
        apparatus_id: int,
        judge_account_id: str,
        difficulty: Decimal,
        execution: Decimal,
        deductions: Decimal,
        final: Decimal,
        notes: Optional[str] = None,
    ) -> ScoreEntry:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStore:
    """Dict-backed ScoreStore. Not thread-safe; one instance per test or request."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._accounts: dict[str, Account] = {}
        self._participants: dict[int, ParticipantRecord] = {}
        self._competitions: dict[int, Competition] = {}
        self._sessions: dict[int, Session] = {}
        self._scores: dict[int, ScoreEntry] = {}
        # session_id -> participant ids in attachment order
        self._rosters: dict[int, list[int]] = {}
        self._ids = {
            name: itertools.count(1)
            for name in ("participant", "competition", "session", "score")
        }

    def _next_id(self, name: str) -> int:
        return next(self._ids[name])

    # Accounts

    def get_accounts_by_role(self, role: Role) -> list[Account]:
        return sorted(
            (account for account in self._accounts.values() if account.role == role),
            key=lambda account: account.id,
        )

    def get_account(self, account_id: str) -> Optional[Account]:
        return self._accounts.get(account_id)

    def upsert_account(self, account: Account) -> Account:
        if account.created_at is None:
            account = replace(account, created_at=self._clock())
        self._accounts[account.id] = account
        return account

    def delete_account(self, account_id: str) -> bool:
        return self._accounts.pop(account_id, None) is not None

    # Participants

    def get_participants_by_name(self, first_name: str, last_name: str) -> list[ParticipantRecord]:
        return [
            record
            for record in self._participants.values()
            if record.first_name == first_name and record.last_name == last_name
        ]

    def get_participant(self, participant_id: int) -> Optional[ParticipantRecord]:
        return self._participants.get(participant_id)

    def create_participant(
        self,
        *,
        first_name: str,
        last_name: str,
        club_name: str,
        level: str,
        approved: bool,
        account_id: Optional[str] = None,
        competition_id: Optional[int] = None,
    ) -> ParticipantRecord:
        record = ParticipantRecord(
            id=self._next_id("participant"),
            first_name=first_name,
            last_name=last_name,
            club_name=club_name,
            level=level,
            approved=approved,
            account_id=account_id,
            competition_id=competition_id,
        )
        self._participants[record.id] = record
        return record

    def attach_participant_to_session(self, session_id: int, participant_id: int) -> None:
        roster = self._rosters.setdefault(session_id, [])
        if participant_id not in roster:
            roster.append(participant_id)

    def get_session_participants(self, session_id: int) -> list[ParticipantRecord]:
        return [self._participants[pid] for pid in self._rosters.get(session_id, []) if pid in self._participants]

    # Competitions and sessions

    def get_competition(self, competition_id: int) -> Optional[Competition]:
        return self._competitions.get(competition_id)

    def create_competition(
        self,
        *,
        name: str,
        venue: str,
        start_date: date,
        end_date: date,
        created_by: str,
        description: Optional[str] = None,
    ) -> Competition:
        competition = Competition(
            id=self._next_id("competition"),
            name=name,
            venue=venue,
            start_date=start_date,
            end_date=end_date,
            created_by=created_by,
            description=description,
        )
        self._competitions[competition.id] = competition
        return competition

    def get_session(self, session_id: int) -> Optional[Session]:
        return self._sessions.get(session_id)

    def create_session(
        self,
        *,
        competition_id: int,
        name: str,
        date: date,
        start_time: time,
        end_time: time,
        level: str,
    ) -> Session:
        session = Session(
            id=self._next_id("session"),
            competition_id=competition_id,
            name=name,
            date=date,
            start_time=start_time,
            end_time=end_time,
            level=level,
        )
        self._sessions[session.id] = session
        return session

    # Scores

    def get_scores_for_session(self, session_id: int) -> list[ScoreEntry]:
        return [entry for entry in self._scores.values() if entry.session_id == session_id]

    def get_scores_for_participant(self, participant_id: int) -> list[ScoreEntry]:
        return sorted(
            (entry for entry in self._scores.values() if entry.participant_id == participant_id),
            key=lambda entry: (entry.created_at, entry.id),
            reverse=True,
        )

    def create_score(
        self,
        *,
        session_id: int,
        participant_id: int,
        apparatus_id: int,
        judge_account_id: str,
        difficulty: Decimal,
        execution: Decimal,
        deductions: Decimal,
        final: Decimal,
        notes: Optional[str] = None,
    ) -> ScoreEntry:
        entry = ScoreEntry(
            id=self._next_id("score"),
            session_id=session_id,
            participant_id=participant_id,
            apparatus_id=apparatus_id,
            judge_account_id=judge_account_id,
            difficulty=difficulty,
            execution=execution,
            deductions=deductions,
            final=final,
            created_at=self._clock(),
            notes=notes,
        )
        self._scores[entry.id] = entry
        return entry
