from datetime import date, datetime, time
from decimal import Decimal

from gymscore_core import (
    Account,
    Competition,
    NoHistory,
    NotFound,
    ParticipantRecord,
    PermissionDenied,
    ScoreEntry,
    Session,
    ValidationError,
    aggregate,
    competition_status,
    error_payload,
    rank_apparatus,
)
from gymscore_core.wire import (
    account_to_json,
    competition_to_json,
    ranking_to_json,
    score_to_json,
    session_to_json,
    stats_to_json,
)

CREATED = datetime(2026, 4, 10, 9, 30)


def _entry(sid, pid, d, e, ded, final):
    return ScoreEntry(
        id=sid,
        session_id=1,
        participant_id=pid,
        apparatus_id=1,
        judge_account_id="judge-1",
        difficulty=Decimal(d),
        execution=Decimal(e),
        deductions=Decimal(ded),
        final=Decimal(final),
        created_at=CREATED,
    )


def test_account_json_uses_client_field_names():
    judge = Account(id="j1", role="judge", approved=False, judge_id="J-1", display_name="Pat")
    payload = account_to_json(judge)
    assert payload["isApproved"] is False
    assert payload["judgeId"] == "J-1"
    assert "clubName" not in payload

    gymnast = Account(id="g1", role="gymnast", approved=True, club_affiliation="Flips Gym")
    assert account_to_json(gymnast)["clubAffiliation"] == "Flips Gym"


def test_score_json_renders_one_decimal_strings():
    payload = score_to_json(_entry(3, 7, "5.0", "8.45", "1", "12.45"))
    assert payload["gymnastId"] == 7
    assert payload["difficultyScore"] == "5.0"
    assert payload["executionScore"] == "8.5"
    assert payload["finalScore"] == "12.5"
    assert payload["createdAt"] == "2026-04-10T09:30:00"


def test_session_json_formats_times():
    session = Session(
        id=2,
        competition_id=5,
        name="Session A",
        date=date(2026, 4, 10),
        start_time=time(9, 0),
        end_time=time(12, 30),
        level="L5",
    )
    payload = session_to_json(session, "upcoming")
    assert payload["eventId"] == 5
    assert payload["startTime"] == "09:00"
    assert payload["endTime"] == "12:30"
    assert payload["status"] == "upcoming"


def test_ranking_json_keeps_unscored_rows():
    ana = ParticipantRecord(id=1, first_name="Ana", last_name="Alpha", club_name="Flips", level="L5")
    bea = ParticipantRecord(id=2, first_name="Bea", last_name="Bravo", club_name="Flips", level="L5")
    ranking = rank_apparatus([ana, bea], [_entry(1, 1, "4", "5.25", "0", "9.25")], 1)
    payload = ranking_to_json(ranking)
    assert payload["apparatusCode"] == "FX"
    assert payload["rows"][0]["finalScore"] == "9.3"
    assert payload["rows"][0]["position"] == 1
    assert payload["rows"][1]["finalScore"] is None
    assert payload["rows"][1]["position"] is None


def test_stats_json_for_both_outcomes():
    jane = ParticipantRecord(id=1, first_name="Jane", last_name="Doe", club_name="Flips", level="L5")
    assert stats_to_json(NoHistory(participant_id=1)) == {
        "gymnastId": 1,
        "hasHistory": False,
        "message": "no scored routines yet",
    }
    stats = aggregate(jane, [_entry(1, 1, "4", "4.8", "0", "8.8")])
    payload = stats_to_json(stats)
    assert payload["hasHistory"] is True
    assert payload["bestScore"] == "8.8"
    assert payload["apparatusStats"][0]["apparatus"] == "Floor"
    assert payload["recentScores"][0]["total"] == "8.8"
    assert payload["recentScores"][0]["date"] == "2026-04-10"


def test_error_payloads():
    assert error_payload(PermissionDenied(reason="not_approved")) == {
        "kind": "permission_denied",
        "statusCode": 403,
        "reason": "not_approved",
    }
    assert error_payload(NotFound(entity="session", id=4))["statusCode"] == 404
    payload = error_payload(ValidationError(field="endDate", constraint="bad range", message="x"))
    assert payload["field"] == "endDate"
    assert payload["message"] == "x"


def test_competition_json_carries_the_derived_status():
    competition = Competition(
        id=4,
        name="Spring Open",
        venue="City Arena",
        start_date=date(2026, 4, 10),
        end_date=date(2026, 4, 12),
        created_by="club-1",
    )
    payload = competition_to_json(competition, competition_status(competition, date(2026, 4, 11)))
    assert payload["status"] == "live"
    assert payload["startDate"] == "2026-04-10"
    assert payload["createdBy"] == "club-1"
