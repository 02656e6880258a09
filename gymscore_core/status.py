"""Competition and session status, derived from the clock at read time."""
from __future__ import annotations

from datetime import date, datetime

from .types import Competition, EventStatus, Session


def competition_status(competition: Competition, today: date) -> EventStatus:
    """upcoming before start_date, live within the inclusive range, completed after."""
    if competition.status_override is not None:
        return competition.status_override
    if today < competition.start_date:
        return "upcoming"
    if today > competition.end_date:
        return "completed"
    return "live"


def session_status(session: Session, now: datetime) -> EventStatus:
    """Status of a session window ``[start_time, end_time)`` on its date.

    ``now`` is compared as local wall-clock time; callers pass it in the
    competition's time zone.
    """
    if session.status_override is not None:
        return session.status_override
    starts = datetime.combine(session.date, session.start_time)
    ends = datetime.combine(session.date, session.end_time)
    wall = now.replace(tzinfo=None)
    if wall < starts:
        return "upcoming"
    if wall >= ends:
        return "completed"
    return "live"
