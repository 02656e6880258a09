"""Apparatus and all-around ranking over a session's score sheet.

Ordering rules:
- Only the authoritative entry (latest ``created_at``, then highest id) per
  (session, participant, apparatus) counts.
- Positive finals first, highest first. Equal finals: earlier submission
  first, then name.
- Participants with no authoritative entry, or one with a final of exactly 0,
  share the bottom of the table in name order and get no position.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Sequence

from .types import APPARATUS_CATALOG, Apparatus, ParticipantRecord, ScoreEntry, get_apparatus


ScoreKey = tuple[int, int, int]


@dataclass(frozen=True)
class RankingRow:
    participant_id: int
    first_name: str
    last_name: str
    club_name: str
    position: Optional[int]
    final: Optional[Decimal]
    score_id: Optional[int] = None
    submitted_at: Optional[datetime] = None

    @property
    def scored(self) -> bool:
        return self.position is not None


@dataclass(frozen=True)
class ApparatusRanking:
    apparatus: Apparatus
    session_id: Optional[int]
    rows: tuple[RankingRow, ...]

    @property
    def scored_count(self) -> int:
        return sum(1 for row in self.rows if row.scored)


@dataclass(frozen=True)
class AllAroundRow:
    participant_id: int
    first_name: str
    last_name: str
    club_name: str
    position: Optional[int]
    total: Optional[Decimal]
    # apparatus_id -> authoritative positive final
    finals: dict[int, Decimal]


@dataclass(frozen=True)
class AllAroundRanking:
    session_id: Optional[int]
    rows: tuple[AllAroundRow, ...]


def _recency_key(entry: ScoreEntry) -> tuple[datetime, int]:
    return (entry.created_at, entry.id)


def _name_key(participant: ParticipantRecord) -> tuple[str, str, int]:
    return (
        participant.last_name.lower(),
        participant.first_name.lower(),
        participant.id,
    )


def _is_positive(entry: Optional[ScoreEntry]) -> bool:
    return entry is not None and entry.final > 0


def authoritative_scores(scores: Iterable[ScoreEntry]) -> dict[ScoreKey, ScoreEntry]:
    """Keep the most recently created entry per (session, participant, apparatus)."""
    latest: dict[ScoreKey, ScoreEntry] = {}
    for entry in scores:
        key = (entry.session_id, entry.participant_id, entry.apparatus_id)
        current = latest.get(key)
        if current is None or _recency_key(entry) > _recency_key(current):
            latest[key] = entry
    return latest


def _single_session(scores: Sequence[ScoreEntry], session_id: Optional[int]) -> Optional[int]:
    if session_id is not None:
        return session_id
    sessions = {entry.session_id for entry in scores}
    if len(sessions) > 1:
        raise ValueError("scores span several sessions; pass session_id")
    return next(iter(sessions), None)


def _unique_participants(participants: Iterable[ParticipantRecord]) -> list[ParticipantRecord]:
    seen: set[int] = set()
    unique: list[ParticipantRecord] = []
    for participant in participants:
        if participant.id in seen:
            continue
        seen.add(participant.id)
        unique.append(participant)
    return unique


def rank_apparatus(
    participants: Sequence[ParticipantRecord],
    scores: Sequence[ScoreEntry],
    apparatus_id: int,
    *,
    session_id: Optional[int] = None,
) -> ApparatusRanking:
    """
    Order a session roster on one apparatus.

    Args:
      participants: the session roster; scores for anyone else are ignored.
      scores: score entries (history included) for the session.
      apparatus_id: catalog id of the apparatus to rank.
      session_id: restricts ``scores``; required when they cover several sessions.
    """
    apparatus = get_apparatus(apparatus_id)
    session_id = _single_session(scores, session_id)
    relevant = [
        entry
        for entry in scores
        if entry.apparatus_id == apparatus.id and entry.session_id == session_id
    ]
    by_participant = {
        key[1]: entry for key, entry in authoritative_scores(relevant).items()
    }

    scored: list[tuple[ParticipantRecord, ScoreEntry]] = []
    unscored: list[ParticipantRecord] = []
    for participant in _unique_participants(participants):
        entry = by_participant.get(participant.id)
        if _is_positive(entry):
            scored.append((participant, entry))
        else:
            unscored.append(participant)

    scored.sort(key=lambda pair: (-pair[1].final, pair[1].created_at, _name_key(pair[0])))
    unscored.sort(key=_name_key)

    rows: list[RankingRow] = []
    for position, (participant, entry) in enumerate(scored, start=1):
        rows.append(
            RankingRow(
                participant_id=participant.id,
                first_name=participant.first_name,
                last_name=participant.last_name,
                club_name=participant.club_name,
                position=position,
                final=entry.final,
                score_id=entry.id,
                submitted_at=entry.created_at,
            )
        )
    for participant in unscored:
        entry = by_participant.get(participant.id)
        rows.append(
            RankingRow(
                participant_id=participant.id,
                first_name=participant.first_name,
                last_name=participant.last_name,
                club_name=participant.club_name,
                position=None,
                final=entry.final if entry is not None else None,
                score_id=entry.id if entry is not None else None,
                submitted_at=entry.created_at if entry is not None else None,
            )
        )
    return ApparatusRanking(apparatus=apparatus, session_id=session_id, rows=tuple(rows))


def placement(
    entry: ScoreEntry,
    field_scores: Sequence[ScoreEntry],
    participants: Optional[Mapping[int, ParticipantRecord]] = None,
) -> Optional[tuple[int, int]]:
    """Return ``(position, total_competitors)`` for an authoritative positive entry.

    ``field_scores`` holds the whole session's sheet. ``total_competitors``
    counts everyone with an authoritative entry on the apparatus, zeros
    included. Returns None when ``entry`` is superseded or not positive.
    """
    relevant = [
        other
        for other in list(field_scores) + [entry]
        if other.session_id == entry.session_id and other.apparatus_id == entry.apparatus_id
    ]
    current = authoritative_scores(relevant)
    key = (entry.session_id, entry.participant_id, entry.apparatus_id)
    if current.get(key) != entry or not _is_positive(entry):
        return None

    def order_key(item: ScoreEntry) -> tuple:
        participant = (participants or {}).get(item.participant_id)
        name = _name_key(participant) if participant is not None else ("", "", item.participant_id)
        return (-item.final, item.created_at, name)

    positives = sorted((item for item in current.values() if _is_positive(item)), key=order_key)
    position = next(i for i, item in enumerate(positives, start=1) if item.participant_id == entry.participant_id)
    return position, len(current)


def rank_all_around(
    participants: Sequence[ParticipantRecord],
    scores: Sequence[ScoreEntry],
    *,
    session_id: Optional[int] = None,
) -> AllAroundRanking:
    """Rank by the sum of authoritative positive finals over the four apparatus.

    A zero total sorts with the unscored tail. Equal totals fall back to name.
    """
    session_id = _single_session(scores, session_id)
    catalog_ids = {item.id for item in APPARATUS_CATALOG}
    current = authoritative_scores(
        entry
        for entry in scores
        if entry.session_id == session_id and entry.apparatus_id in catalog_ids
    )
    finals: dict[int, dict[int, Decimal]] = {}
    for (_, participant_id, apparatus_id), entry in current.items():
        if _is_positive(entry):
            finals.setdefault(participant_id, {})[apparatus_id] = entry.final

    scored: list[tuple[ParticipantRecord, Decimal]] = []
    unscored: list[ParticipantRecord] = []
    for participant in _unique_participants(participants):
        per_apparatus = finals.get(participant.id, {})
        total = sum(per_apparatus.values(), Decimal("0"))
        if total > 0:
            scored.append((participant, total))
        else:
            unscored.append(participant)

    scored.sort(key=lambda pair: (-pair[1], _name_key(pair[0])))
    unscored.sort(key=_name_key)

    rows = [
        AllAroundRow(
            participant_id=participant.id,
            first_name=participant.first_name,
            last_name=participant.last_name,
            club_name=participant.club_name,
            position=position,
            total=total,
            finals=dict(sorted(finals.get(participant.id, {}).items())),
        )
        for position, (participant, total) in enumerate(scored, start=1)
    ]
    rows.extend(
        AllAroundRow(
            participant_id=participant.id,
            first_name=participant.first_name,
            last_name=participant.last_name,
            club_name=participant.club_name,
            position=None,
            total=None,
            finals={},
        )
        for participant in unscored
    )
    return AllAroundRanking(session_id=session_id, rows=tuple(rows))
