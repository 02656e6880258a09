"""JSON shapes handed to the transport layer.

Field names follow the existing client payloads (camelCase, ``isApproved``,
``gymnastId``, ``finalScore``). Scores go out as one-decimal strings.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, TypedDict

from .approval import ApprovalOutcome
from .ranking import AllAroundRanking, ApparatusRanking
from .roster import RosterResolution
from .scoring import display
from .stats import NoHistory, StatsResult
from .types import Account, Competition, ParticipantRecord, ScoreEntry, Session


class AccountJson(TypedDict, total=False):
    id: str
    role: str
    isApproved: bool
    firstName: Optional[str]
    lastName: Optional[str]
    email: Optional[str]
    judgeId: Optional[str]
    displayName: Optional[str]
    clubName: Optional[str]
    clubUsername: Optional[str]
    location: Optional[str]
    clubAffiliation: Optional[str]
    createdAt: Optional[str]


class ScoreJson(TypedDict):
    id: int
    sessionId: int
    gymnastId: int
    apparatusId: int
    judgeId: str
    difficultyScore: str
    executionScore: str
    deductions: str
    finalScore: str
    notes: Optional[str]
    createdAt: str


class RankingRowJson(TypedDict):
    gymnastId: int
    firstName: str
    lastName: str
    clubName: str
    position: Optional[int]
    finalScore: Optional[str]
    scoreId: Optional[int]


class ApparatusStatJson(TypedDict):
    apparatus: str
    apparatusId: int
    count: int
    average: str
    best: str


class RecentScoreJson(TypedDict):
    id: int
    eventName: Optional[str]
    sessionName: Optional[str]
    apparatus: str
    difficulty: str
    execution: str
    deductions: str
    total: str
    date: Optional[str]
    position: Optional[int]
    totalCompetitors: Optional[int]


class StatsJson(TypedDict, total=False):
    gymnastId: int
    hasHistory: bool
    message: str
    totalCompetitions: int
    bestScore: str
    averageScore: str
    medalsWon: int
    apparatusStats: List[ApparatusStatJson]
    recentScores: List[RecentScoreJson]


def _iso(value: Optional[date | datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _score(value: Optional[Decimal], places: int) -> Optional[str]:
    return display(value, places) if value is not None else None


def account_to_json(account: Account) -> AccountJson:
    payload: AccountJson = {
        "id": account.id,
        "role": account.role,
        "isApproved": account.approved,
        "firstName": account.first_name,
        "lastName": account.last_name,
        "email": account.email,
        "createdAt": _iso(account.created_at),
    }
    if account.role == "judge":
        payload["judgeId"] = account.judge_id
        payload["displayName"] = account.display_name
    elif account.role == "club":
        payload["clubName"] = account.club_name
        payload["clubUsername"] = account.club_username
        payload["location"] = account.location
    elif account.role == "gymnast":
        payload["clubAffiliation"] = account.club_affiliation
    return payload


def approval_to_json(outcome: ApprovalOutcome) -> dict:
    payload = {
        "accountId": outcome.account_id,
        "state": outcome.state,
        "alreadyApproved": outcome.already_approved,
    }
    if outcome.account is not None:
        payload["account"] = account_to_json(outcome.account)
    return payload


def competition_to_json(competition: Competition, status: str) -> dict:
    return {
        "id": competition.id,
        "name": competition.name,
        "venue": competition.venue,
        "startDate": _iso(competition.start_date),
        "endDate": _iso(competition.end_date),
        "description": competition.description,
        "status": status,
        "createdBy": competition.created_by,
    }


def session_to_json(session: Session, status: str) -> dict:
    return {
        "id": session.id,
        "eventId": session.competition_id,
        "name": session.name,
        "date": _iso(session.date),
        "startTime": session.start_time.strftime("%H:%M"),
        "endTime": session.end_time.strftime("%H:%M"),
        "level": session.level,
        "status": status,
    }


def participant_to_json(record: ParticipantRecord) -> dict:
    return {
        "id": record.id,
        "userId": record.account_id,
        "firstName": record.first_name,
        "lastName": record.last_name,
        "clubName": record.club_name,
        "level": record.level,
        "isApproved": record.approved,
        "isProvisional": record.is_provisional,
    }


def score_to_json(entry: ScoreEntry, places: int = 1) -> ScoreJson:
    return {
        "id": entry.id,
        "sessionId": entry.session_id,
        "gymnastId": entry.participant_id,
        "apparatusId": entry.apparatus_id,
        "judgeId": entry.judge_account_id,
        "difficultyScore": display(entry.difficulty, places),
        "executionScore": display(entry.execution, places),
        "deductions": display(entry.deductions, places),
        "finalScore": display(entry.final, places),
        "notes": entry.notes,
        "createdAt": entry.created_at.isoformat(),
    }


def roster_to_json(resolution: RosterResolution) -> dict:
    return {
        "sessionId": resolution.session_id,
        "entries": [
            {
                "index": item.index,
                "outcome": item.outcome,
                "matched": item.matched,
                "gymnastId": item.participant.id if item.participant is not None else None,
                "userId": item.account_id,
                "detail": item.detail,
            }
            for item in resolution.entries
        ],
        "matched": resolution.matched_count,
        "provisioned": resolution.provisioned_count,
        "failed": resolution.failed_count,
    }


def ranking_to_json(ranking: ApparatusRanking, places: int = 1) -> dict:
    rows: List[RankingRowJson] = [
        {
            "gymnastId": row.participant_id,
            "firstName": row.first_name,
            "lastName": row.last_name,
            "clubName": row.club_name,
            "position": row.position,
            "finalScore": _score(row.final, places),
            "scoreId": row.score_id,
        }
        for row in ranking.rows
    ]
    return {
        "sessionId": ranking.session_id,
        "apparatus": ranking.apparatus.name,
        "apparatusId": ranking.apparatus.id,
        "apparatusCode": ranking.apparatus.code,
        "rows": rows,
    }


def all_around_to_json(ranking: AllAroundRanking, places: int = 1) -> dict:
    return {
        "sessionId": ranking.session_id,
        "rows": [
            {
                "gymnastId": row.participant_id,
                "firstName": row.first_name,
                "lastName": row.last_name,
                "clubName": row.club_name,
                "position": row.position,
                "total": _score(row.total, places),
                "finals": {str(k): display(v, places) for k, v in row.finals.items()},
            }
            for row in ranking.rows
        ],
    }


def stats_to_json(result: StatsResult, places: int = 1) -> StatsJson:
    if isinstance(result, NoHistory):
        return {
            "gymnastId": result.participant_id,
            "hasHistory": False,
            "message": result.message,
        }
    return {
        "gymnastId": result.participant_id,
        "hasHistory": True,
        "totalCompetitions": result.total_competitions,
        "bestScore": display(result.best_score, places),
        "averageScore": display(result.average_score, places),
        "medalsWon": result.medals_won,
        "apparatusStats": [
            {
                "apparatus": item.apparatus_name,
                "apparatusId": item.apparatus_id,
                "count": item.count,
                "average": display(item.average, places),
                "best": display(item.best, places),
            }
            for item in result.apparatus_breakdown
        ],
        "recentScores": [
            {
                "id": item.score_id,
                "eventName": item.competition_name,
                "sessionName": item.session_name,
                "apparatus": item.apparatus_name,
                "difficulty": display(item.difficulty, places),
                "execution": display(item.execution, places),
                "deductions": display(item.deductions, places),
                "total": display(item.final, places),
                "date": _iso(item.date),
                "position": item.position,
                "totalCompetitors": item.total_competitors,
            }
            for item in result.recent_scores
        ],
    }
