from .actions import (
    SessionLeaderboard,
    approve_account,
    create_competition,
    create_session,
    list_pending_accounts,
    participant_history,
    register_account,
    reject_account,
    session_leaderboard,
    submit_roster,
    submit_score,
)
from .approval import ApprovalOutcome, approval_state, new_account, participant_approved
from .config import DEFAULT_SETTINGS, CoreSettings
from .errors import (
    ActionResult,
    ApprovalMismatch,
    CoreError,
    NotFound,
    PermissionDenied,
    ValidationError,
    error_payload,
)
from .ranking import (
    AllAroundRanking,
    ApparatusRanking,
    RankingRow,
    authoritative_scores,
    placement,
    rank_all_around,
    rank_apparatus,
)
from .role_gate import GateDecision, can_perform
from .roster import (
    EntryResolution,
    ExactNameMatcher,
    IdentityMatcher,
    RosterEntry,
    RosterResolution,
    resolve_roster,
)
from .scoring import ScoreBreakdown, ScoreOutOfRange, compute, compute_breakdown, display
from .stats import ApparatusSummary, NoHistory, ParticipantStats, RecentScore, aggregate
from .status import competition_status, session_status
from .store import InMemoryStore, ScoreStore
from .types import (
    APPARATUS_CATALOG,
    Account,
    Apparatus,
    Competition,
    ParticipantRecord,
    ScoreEntry,
    Session,
    get_apparatus,
)

__all__ = [
    "SessionLeaderboard",
    "approve_account",
    "create_competition",
    "create_session",
    "list_pending_accounts",
    "participant_history",
    "register_account",
    "reject_account",
    "session_leaderboard",
    "submit_roster",
    "submit_score",
    "ApprovalOutcome",
    "approval_state",
    "new_account",
    "participant_approved",
    "DEFAULT_SETTINGS",
    "CoreSettings",
    "ActionResult",
    "ApprovalMismatch",
    "CoreError",
    "NotFound",
    "PermissionDenied",
    "ValidationError",
    "error_payload",
    "AllAroundRanking",
    "ApparatusRanking",
    "RankingRow",
    "authoritative_scores",
    "placement",
    "rank_all_around",
    "rank_apparatus",
    "GateDecision",
    "can_perform",
    "EntryResolution",
    "ExactNameMatcher",
    "IdentityMatcher",
    "RosterEntry",
    "RosterResolution",
    "resolve_roster",
    "ScoreBreakdown",
    "ScoreOutOfRange",
    "compute",
    "compute_breakdown",
    "display",
    "ApparatusSummary",
    "NoHistory",
    "ParticipantStats",
    "RecentScore",
    "aggregate",
    "competition_status",
    "session_status",
    "InMemoryStore",
    "ScoreStore",
    "APPARATUS_CATALOG",
    "Account",
    "Apparatus",
    "Competition",
    "ParticipantRecord",
    "ScoreEntry",
    "Session",
    "get_apparatus",
]
