"""Per-participant history summaries.

Zero/unscored entries are excluded everywhere, the same policy the ranking
tables use, so a scratched routine never drags an average down.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Mapping, Optional, Sequence, Union

from .ranking import authoritative_scores, placement
from .types import APPARATUS_BY_ID, Competition, ParticipantRecord, ScoreEntry, Session


@dataclass(frozen=True)
class ApparatusSummary:
    apparatus_id: int
    apparatus_name: str
    count: int
    average: Decimal
    best: Decimal


@dataclass(frozen=True)
class RecentScore:
    score_id: int
    session_id: int
    competition_id: Optional[int]
    competition_name: Optional[str]
    session_name: Optional[str]
    apparatus_id: int
    apparatus_name: str
    difficulty: Decimal
    execution: Decimal
    deductions: Decimal
    final: Decimal
    date: Optional[date]
    submitted_at: datetime
    position: Optional[int] = None
    total_competitors: Optional[int] = None


@dataclass(frozen=True)
class ParticipantStats:
    participant_id: int
    total_competitions: int
    best_score: Decimal
    average_score: Decimal
    apparatus_breakdown: tuple[ApparatusSummary, ...]
    recent_scores: tuple[RecentScore, ...]
    medals_won: int = 0

    has_history = True


@dataclass(frozen=True)
class NoHistory:
    participant_id: int
    message: str = "no scored routines yet"

    has_history = False


StatsResult = Union[ParticipantStats, NoHistory]


def _average(values: Sequence[Decimal]) -> Decimal:
    return sum(values, Decimal("0")) / len(values)


def _apparatus_name(apparatus_id: int) -> str:
    item = APPARATUS_BY_ID.get(apparatus_id)
    return item.name if item is not None else f"Apparatus {apparatus_id}"


def aggregate(
    participant: ParticipantRecord,
    all_scores: Sequence[ScoreEntry],
    *,
    sessions: Optional[Mapping[int, Session]] = None,
    competitions: Optional[Mapping[int, Competition]] = None,
    field_scores: Optional[Mapping[int, Sequence[ScoreEntry]]] = None,
    rosters: Optional[Mapping[int, Sequence[ParticipantRecord]]] = None,
    recent_limit: int = 10,
    podium_places: int = 3,
) -> StatsResult:
    """
    Summarize a participant's authoritative, positive scores.

    Args:
      participant: roster record whose history is summarized.
      all_scores: score entries; rows for other participants are ignored.
      sessions: session_id -> Session, used to group by competition and label rows.
      competitions: competition_id -> Competition, used to label rows.
      field_scores: session_id -> the full session sheet, used for placings.
      rosters: session_id -> session roster, so equal placings break on name
        the same way the leaderboard does.
      recent_limit: newest-first rows kept in ``recent_scores``.
      podium_places: positions that count toward ``medals_won``.
    """
    sessions = sessions or {}
    competitions = competitions or {}
    field_scores = field_scores or {}
    rosters = rosters or {}

    own = [entry for entry in all_scores if entry.participant_id == participant.id]
    positive = [entry for entry in authoritative_scores(own).values() if entry.final > 0]
    if not positive:
        return NoHistory(participant_id=participant.id)

    competition_keys: set[tuple[str, int]] = set()
    for entry in positive:
        session = sessions.get(entry.session_id)
        if session is not None:
            competition_keys.add(("competition", session.competition_id))
        else:
            competition_keys.add(("session", entry.session_id))

    finals = [entry.final for entry in positive]

    grouped: dict[int, list[Decimal]] = {}
    for entry in positive:
        grouped.setdefault(entry.apparatus_id, []).append(entry.final)
    breakdown = tuple(
        ApparatusSummary(
            apparatus_id=apparatus_id,
            apparatus_name=_apparatus_name(apparatus_id),
            count=len(values),
            average=_average(values),
            best=max(values),
        )
        for apparatus_id, values in sorted(grouped.items())
    )

    placings: dict[int, tuple[int, int]] = {}
    for entry in positive:
        sheet = field_scores.get(entry.session_id)
        if sheet is None:
            continue
        roster = {record.id: record for record in rosters.get(entry.session_id, ())}
        placed = placement(entry, sheet, roster)
        if placed is not None:
            placings[entry.id] = placed

    newest_first = sorted(positive, key=lambda e: (e.created_at, e.id), reverse=True)
    recent: list[RecentScore] = []
    for entry in newest_first[: max(0, recent_limit)]:
        session = sessions.get(entry.session_id)
        competition = competitions.get(session.competition_id) if session is not None else None
        position, total = placings.get(entry.id, (None, None))
        recent.append(
            RecentScore(
                score_id=entry.id,
                session_id=entry.session_id,
                competition_id=session.competition_id if session is not None else None,
                competition_name=competition.name if competition is not None else None,
                session_name=session.name if session is not None else None,
                apparatus_id=entry.apparatus_id,
                apparatus_name=_apparatus_name(entry.apparatus_id),
                difficulty=entry.difficulty,
                execution=entry.execution,
                deductions=entry.deductions,
                final=entry.final,
                date=session.date if session is not None else entry.created_at.date(),
                submitted_at=entry.created_at,
                position=position,
                total_competitors=total,
            )
        )

    medals = sum(1 for position, _ in placings.values() if position <= podium_places)

    return ParticipantStats(
        participant_id=participant.id,
        total_competitions=len(competition_keys),
        best_score=max(finals),
        average_score=_average(finals),
        apparatus_breakdown=breakdown,
        recent_scores=tuple(recent),
        medals_won=medals,
    )
