"""Action-level entry points for the transport layer.

Each function takes the acting account explicitly, consults the role gate,
validates the payload at the boundary and returns an ``ActionResult``.
Expected failures come back as typed errors; nothing here retries.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from . import approval
from .config import DEFAULT_SETTINGS, CoreSettings
from .errors import ActionResult, NotFound, ValidationError
from .ranking import AllAroundRanking, ApparatusRanking, rank_all_around, rank_apparatus
from .role_gate import Action, can_perform
from .roster import IdentityMatcher, RosterEntry, RosterResolution, resolve_roster
from .scoring import ScoreOutOfRange, compute_breakdown
from .stats import StatsResult, aggregate
from .status import session_status
from .store import ScoreStore
from .types import (
    APPARATUS_CATALOG,
    Account,
    Competition,
    EventStatus,
    ParticipantRecord,
    ScoreEntry,
    Session,
)
from .validation import (
    CompetitionIn,
    ScoreSubmission,
    SessionIn,
    parse_payload,
    parse_registration,
    parse_roster,
)

logger = logging.getLogger(__name__)

# Internal score field -> payload field name
_SCORE_FIELDS = {
    "difficulty": "difficultyScore",
    "execution": "executionScore",
    "deductions": "deductions",
}


@dataclass(frozen=True)
class SessionLeaderboard:
    session: Session
    status: EventStatus
    apparatus: tuple[ApparatusRanking, ...]
    all_around: Optional[AllAroundRanking] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _gate(actor: Optional[Account], action: Action, context: Optional[Account] = None):
    decision = can_perform(actor, action, context)
    if decision.allowed:
        return None
    actor_id = actor.id if actor is not None else None
    logger.warning(f"{action} denied for {actor_id}: {decision.reason}")
    return decision.to_error()


# ==================== ACCOUNTS ====================


def register_account(
    store: ScoreStore,
    payload: Any,
    *,
    account_id: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    email: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ActionResult[Account]:
    """Create an account from a role-tagged registration payload.

    Identity fields (id, names, email) come from the authentication layer,
    not from the payload.
    """
    registration = parse_registration(payload)
    if isinstance(registration, ValidationError):
        return ActionResult.failure(registration)
    if store.get_account(account_id) is not None:
        return ActionResult.failure(
            ValidationError(field="id", constraint="account already registered")
        )
    account = approval.new_account(
        registration,
        account_id=account_id,
        first_name=first_name,
        last_name=last_name,
        email=email,
        created_at=now or _utcnow(),
    )
    saved = store.upsert_account(account)
    logger.info(f"Registered {saved.role} account {saved.id} (approved={saved.approved})")
    return ActionResult.success(saved)


def approve_account(
    store: ScoreStore, approver: Optional[Account], account_id: str
) -> ActionResult[approval.ApprovalOutcome]:
    return approval.approve(store, account_id, approver)


def reject_account(
    store: ScoreStore, approver: Optional[Account], account_id: str
) -> ActionResult[approval.ApprovalOutcome]:
    return approval.reject(store, account_id, approver)


def list_pending_accounts(
    store: ScoreStore, viewer: Optional[Account]
) -> ActionResult[list[Account]]:
    return approval.pending_accounts(store, viewer)


# ==================== COMPETITIONS ====================


def create_competition(
    store: ScoreStore, actor: Optional[Account], payload: Any
) -> ActionResult[Competition]:
    denied = _gate(actor, "create_competition")
    if denied is not None:
        return ActionResult.failure(denied)
    data = parse_payload(CompetitionIn, payload)
    if isinstance(data, ValidationError):
        return ActionResult.failure(data)
    competition = store.create_competition(
        name=data.name,
        venue=data.venue,
        start_date=data.start_date,
        end_date=data.end_date,
        created_by=actor.id,
        description=data.description,
    )
    logger.info(f"Competition {competition.id} created by {actor.id}")
    return ActionResult.success(competition)


def create_session(
    store: ScoreStore, actor: Optional[Account], competition_id: int, payload: Any
) -> ActionResult[Session]:
    denied = _gate(actor, "create_session")
    if denied is not None:
        return ActionResult.failure(denied)
    competition = store.get_competition(competition_id)
    if competition is None:
        return ActionResult.failure(NotFound(entity="competition", id=competition_id))
    data = parse_payload(SessionIn, payload)
    if isinstance(data, ValidationError):
        return ActionResult.failure(data)
    if not (competition.start_date <= data.date <= competition.end_date):
        return ActionResult.failure(
            ValidationError(field="date", constraint="must fall within the competition dates")
        )
    session = store.create_session(
        competition_id=competition.id,
        name=data.name,
        date=data.date,
        start_time=data.start_time,
        end_time=data.end_time,
        level=data.level,
    )
    logger.info(f"Session {session.id} added to competition {competition.id}")
    return ActionResult.success(session)


# ==================== ROSTERS ====================


def submit_roster(
    store: ScoreStore,
    actor: Optional[Account],
    session_id: int,
    entries: Any,
    *,
    matcher: Optional[IdentityMatcher] = None,
    settings: CoreSettings = DEFAULT_SETTINGS,
) -> ActionResult[RosterResolution]:
    denied = _gate(actor, "submit_roster")
    if denied is not None:
        return ActionResult.failure(denied)
    session = store.get_session(session_id)
    if session is None:
        return ActionResult.failure(NotFound(entity="session", id=session_id))
    if isinstance(entries, list) and len(entries) > settings.max_roster_entries:
        return ActionResult.failure(
            ValidationError(
                field="entries",
                constraint=f"cannot exceed {settings.max_roster_entries} entries",
            )
        )
    parsed = parse_roster(entries)
    if isinstance(parsed, ValidationError):
        return ActionResult.failure(parsed)
    roster = [
        item
        if isinstance(item, ValidationError)
        else RosterEntry(
            first_name=item.first_name,
            last_name=item.last_name,
            club_name=item.club_name,
            level=item.level,
        )
        for item in parsed
    ]
    return ActionResult.success(resolve_roster(store, session, roster, matcher=matcher))


# ==================== SCORES ====================


def submit_score(
    store: ScoreStore,
    actor: Optional[Account],
    payload: Any,
    *,
    settings: CoreSettings = DEFAULT_SETTINGS,
) -> ActionResult[ScoreEntry]:
    """Record a score. Re-submitting for the same routine adds a new,
    authoritative entry and keeps the old one as history."""
    denied = _gate(actor, "submit_score")
    if denied is not None:
        return ActionResult.failure(denied)
    data = parse_payload(ScoreSubmission, payload)
    if isinstance(data, ValidationError):
        return ActionResult.failure(data)
    session = store.get_session(data.session_id)
    if session is None:
        return ActionResult.failure(NotFound(entity="session", id=data.session_id))
    participant = store.get_participant(data.participant_id)
    if participant is None:
        return ActionResult.failure(NotFound(entity="participant", id=data.participant_id))
    if all(p.id != participant.id for p in store.get_session_participants(session.id)):
        return ActionResult.failure(
            ValidationError(field="gymnastId", constraint="not on this session's roster")
        )
    try:
        breakdown = compute_breakdown(
            data.difficulty,
            data.execution,
            data.deductions,
            max_component=settings.max_component_score,
        )
    except ScoreOutOfRange as exc:
        field = _SCORE_FIELDS.get(exc.field, exc.field)
        logger.warning(f"Score rejected for participant {participant.id}: {field} {exc.constraint}")
        return ActionResult.failure(ValidationError(field=field, constraint=exc.constraint))

    entry = store.create_score(
        session_id=session.id,
        participant_id=participant.id,
        apparatus_id=data.apparatus_id,
        judge_account_id=actor.id,
        difficulty=breakdown.difficulty,
        execution=breakdown.execution,
        deductions=breakdown.deductions,
        final=breakdown.final,
        notes=data.notes,
    )
    logger.info(
        f"Score {entry.id} recorded: session {session.id}, participant {participant.id}, "
        f"apparatus {entry.apparatus_id}, final {entry.final}"
    )
    return ActionResult.success(entry)


# ==================== READS ====================


def session_leaderboard(
    store: ScoreStore,
    viewer: Optional[Account],
    session_id: int,
    apparatus_id: Optional[int] = None,
    *,
    now: Optional[datetime] = None,
) -> ActionResult[SessionLeaderboard]:
    """Rank one apparatus, or every apparatus plus the all-around when
    ``apparatus_id`` is None."""
    denied = _gate(viewer, "view_results")
    if denied is not None:
        return ActionResult.failure(denied)
    session = store.get_session(session_id)
    if session is None:
        return ActionResult.failure(NotFound(entity="session", id=session_id))
    if apparatus_id is not None and apparatus_id not in {a.id for a in APPARATUS_CATALOG}:
        return ActionResult.failure(NotFound(entity="apparatus", id=apparatus_id))

    participants = store.get_session_participants(session.id)
    scores = store.get_scores_for_session(session.id)
    if apparatus_id is not None:
        rankings = (rank_apparatus(participants, scores, apparatus_id, session_id=session.id),)
        all_around = None
    else:
        rankings = tuple(
            rank_apparatus(participants, scores, item.id, session_id=session.id)
            for item in APPARATUS_CATALOG
        )
        all_around = rank_all_around(participants, scores, session_id=session.id)
    return ActionResult.success(
        SessionLeaderboard(
            session=session,
            status=session_status(session, now or _utcnow()),
            apparatus=rankings,
            all_around=all_around,
        )
    )


def participant_history(
    store: ScoreStore,
    viewer: Optional[Account],
    participant_id: int,
    *,
    settings: CoreSettings = DEFAULT_SETTINGS,
) -> ActionResult[StatsResult]:
    denied = _gate(viewer, "view_results")
    if denied is not None:
        return ActionResult.failure(denied)
    participant = store.get_participant(participant_id)
    if participant is None:
        return ActionResult.failure(NotFound(entity="participant", id=participant_id))

    scores = store.get_scores_for_participant(participant.id)
    sessions: dict[int, Session] = {}
    field_scores: dict[int, Sequence[ScoreEntry]] = {}
    rosters: dict[int, Sequence[ParticipantRecord]] = {}
    for session_id in {entry.session_id for entry in scores}:
        session = store.get_session(session_id)
        if session is not None:
            sessions[session_id] = session
        field_scores[session_id] = store.get_scores_for_session(session_id)
        rosters[session_id] = store.get_session_participants(session_id)
    competitions: dict[int, Competition] = {}
    for session in sessions.values():
        competition = store.get_competition(session.competition_id)
        if competition is not None:
            competitions[competition.id] = competition

    return ActionResult.success(
        aggregate(
            participant,
            scores,
            sessions=sessions,
            competitions=competitions,
            field_scores=field_scores,
            rosters=rosters,
            recent_limit=settings.recent_scores_limit,
            podium_places=settings.podium_places,
        )
    )
