from datetime import date, datetime, time, timedelta
from decimal import Decimal

from gymscore_core import (
    Competition,
    NoHistory,
    ParticipantRecord,
    ParticipantStats,
    ScoreEntry,
    Session,
    aggregate,
    rank_apparatus,
)

BASE = datetime(2026, 2, 1, 10, 0)
JANE = ParticipantRecord(id=1, first_name="Jane", last_name="Doe", club_name="Flips", level="L5")


def _score(sid, final, *, session=1, apparatus=1, participant=JANE.id, days=0):
    value = Decimal(final)
    return ScoreEntry(
        id=sid,
        session_id=session,
        participant_id=participant,
        apparatus_id=apparatus,
        judge_account_id="judge-1",
        difficulty=Decimal("0"),
        execution=value,
        deductions=Decimal("0"),
        final=value,
        created_at=BASE + timedelta(days=days),
    )


def _session(sid, competition_id, day):
    return Session(
        id=sid,
        competition_id=competition_id,
        name=f"Session {sid}",
        date=date(2026, 2, day),
        start_time=time(9, 0),
        end_time=time(12, 0),
        level="L5",
    )


def _competition(cid, name):
    return Competition(
        id=cid,
        name=name,
        venue="Arena",
        start_date=date(2026, 2, 1),
        end_date=date(2026, 2, 28),
        created_by="club-1",
    )


def test_zero_scores_are_left_out_of_the_summary():
    scores = [
        _score(1, "8.0", session=1, days=0),
        _score(2, "0.0", session=2, days=1),
        _score(3, "9.5", session=3, days=2),
    ]
    stats = aggregate(JANE, scores)
    assert isinstance(stats, ParticipantStats)
    assert stats.has_history
    floor = stats.apparatus_breakdown[0]
    assert floor.apparatus_name == "Floor"
    assert floor.count == 2
    assert floor.average == Decimal("8.75")
    assert floor.best == Decimal("9.5")
    assert stats.best_score == Decimal("9.5")
    assert stats.average_score == Decimal("8.75")


def test_participant_without_positive_scores_has_no_history():
    result = aggregate(JANE, [_score(1, "0")])
    assert isinstance(result, NoHistory)
    assert not result.has_history
    assert result.participant_id == JANE.id
    assert isinstance(aggregate(JANE, []), NoHistory)


def test_only_the_latest_entry_per_routine_counts():
    scores = [_score(1, "12.0", days=0), _score(2, "10.0", days=1)]
    stats = aggregate(JANE, scores)
    assert stats.best_score == Decimal("10.0")
    assert stats.apparatus_breakdown[0].count == 1


def test_other_participants_are_ignored():
    scores = [_score(1, "9.0"), _score(2, "14.0", participant=2)]
    assert aggregate(JANE, scores).best_score == Decimal("9.0")


def test_breakdown_is_ordered_by_apparatus():
    scores = [
        _score(1, "9.0", apparatus=4),
        _score(2, "8.0", apparatus=1),
        _score(3, "7.0", apparatus=2),
    ]
    names = [item.apparatus_name for item in aggregate(JANE, scores).apparatus_breakdown]
    assert names == ["Floor", "Vault", "Beam"]


def test_competitions_are_counted_through_sessions():
    sessions = {1: _session(1, 10, 1), 2: _session(2, 10, 2), 3: _session(3, 20, 3)}
    scores = [
        _score(1, "9.0", session=1),
        _score(2, "9.1", session=2),
        _score(3, "9.2", session=3),
    ]
    assert aggregate(JANE, scores, sessions=sessions).total_competitions == 2
    # Without session data each session counts on its own.
    assert aggregate(JANE, scores).total_competitions == 3


def test_recent_scores_are_newest_first_and_labelled():
    sessions = {1: _session(1, 10, 1), 2: _session(2, 20, 8)}
    competitions = {10: _competition(10, "Winter Cup"), 20: _competition(20, "Spring Open")}
    scores = [
        _score(1, "9.0", session=1, days=0),
        _score(2, "9.4", session=2, days=7, apparatus=2),
        _score(3, "0", session=2, days=7, apparatus=3),
    ]
    stats = aggregate(JANE, scores, sessions=sessions, competitions=competitions)
    recent = stats.recent_scores
    assert [item.score_id for item in recent] == [2, 1]
    assert recent[0].competition_name == "Spring Open"
    assert recent[0].session_name == "Session 2"
    assert recent[0].apparatus_name == "Vault"
    assert recent[0].date == date(2026, 2, 8)
    assert recent[1].competition_name == "Winter Cup"


def test_recent_scores_respect_the_limit():
    scores = [_score(i, "9.0", apparatus=(i % 4) + 1, session=i, days=i) for i in range(1, 9)]
    stats = aggregate(JANE, scores, recent_limit=3)
    assert [item.score_id for item in stats.recent_scores] == [8, 7, 6]


def test_positions_and_medals_come_from_the_field():
    field = {
        1: [
            _score(1, "9.0", session=1),
            _score(2, "9.5", session=1, participant=2),
            _score(3, "0", session=1, participant=3),
        ],
        2: [
            _score(4, "8.0", session=2, days=1),
            _score(5, "8.5", session=2, participant=2, days=1),
            _score(6, "8.7", session=2, participant=3, days=1),
            _score(7, "9.0", session=2, participant=4, days=1),
        ],
    }
    own = [field[1][0], field[2][0]]
    stats = aggregate(JANE, own, field_scores=field)
    by_id = {item.score_id: item for item in stats.recent_scores}
    assert (by_id[1].position, by_id[1].total_competitors) == (2, 3)
    assert (by_id[4].position, by_id[4].total_competitors) == (4, 4)
    assert stats.medals_won == 1
    assert aggregate(JANE, own, field_scores=field, podium_places=5).medals_won == 2


def test_positions_are_empty_without_field_data():
    stats = aggregate(JANE, [_score(1, "9.0")])
    assert stats.recent_scores[0].position is None
    assert stats.recent_scores[0].total_competitors is None
    assert stats.medals_won == 0


def test_equal_placings_break_on_name_like_the_leaderboard():
    adams = ParticipantRecord(id=2, first_name="Aaron", last_name="Adams", club_name="Flips", level="L5")
    field = {1: [_score(1, "9.0"), _score(2, "9.0", participant=adams.id)]}
    own = [field[1][0]]

    by_name = aggregate(JANE, own, field_scores=field, rosters={1: [JANE, adams]})
    assert by_name.recent_scores[0].position == 2

    leaderboard = rank_apparatus([JANE, adams], field[1], 1)
    assert [row.participant_id for row in leaderboard.rows] == [adams.id, JANE.id]
