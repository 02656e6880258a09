"""Permission predicate consulted by every mutating action.

The acting account is always passed in explicitly; there is no ambient
"current role". Decisions carry a reason code rather than a bare boolean.

| Action                              | Allowed roles | Extra condition                          |
|-------------------------------------|---------------|------------------------------------------|
| create_competition, create_session  | club, admin   |                                          |
| submit_roster, edit_roster          | club, admin   |                                          |
| submit_score, edit_score            | judge, admin  |                                          |
| approve_account (non-gymnast)       | admin         |                                          |
| approve_account (gymnast)           | club          | club_name == club_affiliation, exactly   |
| view_results                        | any           | caller must be authenticated             |

Every action except view_results also requires the acting account to be
approved, and nobody may approve or reject their own account.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from .errors import ApprovalMismatch, CoreError, DenialReason, PermissionDenied
from .types import Account, Role


Action = Literal[
    "create_competition",
    "create_session",
    "submit_roster",
    "edit_roster",
    "submit_score",
    "edit_score",
    "approve_account",
    "view_results",
]

ACTIONS: tuple[Action, ...] = (
    "create_competition",
    "create_session",
    "submit_roster",
    "edit_roster",
    "submit_score",
    "edit_score",
    "approve_account",
    "view_results",
)

_ORGANIZERS: frozenset[Role] = frozenset({"club", "admin"})
_SCORERS: frozenset[Role] = frozenset({"judge", "admin"})

_ALLOWED_ROLES: dict[str, frozenset[Role]] = {
    "create_competition": _ORGANIZERS,
    "create_session": _ORGANIZERS,
    "submit_roster": _ORGANIZERS,
    "edit_roster": _ORGANIZERS,
    "submit_score": _SCORERS,
    "edit_score": _SCORERS,
}


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    reason: Optional[DenialReason] = None
    # Set for club_mismatch: the club the target gymnast is affiliated with.
    expected_club: Optional[str] = None

    def to_error(self) -> Optional[CoreError]:
        if self.allowed:
            return None
        if self.reason == "club_mismatch":
            return ApprovalMismatch(
                expected_club=self.expected_club,
                message=f"only {self.expected_club!r} may approve this gymnast",
            )
        return PermissionDenied(reason=self.reason or "insufficient_role")


ALLOWED = GateDecision(allowed=True)


def _deny(reason: DenialReason, expected_club: Optional[str] = None) -> GateDecision:
    return GateDecision(allowed=False, reason=reason, expected_club=expected_club)


def _can_approve(approver: Account, target: Account) -> GateDecision:
    if approver.id == target.id:
        return _deny("self_approval")
    if target.role == "gymnast":
        if approver.role != "club":
            return _deny("insufficient_role")
        # Exact comparison: no case folding, no whitespace trimming.
        if approver.club_name is None or approver.club_name != target.club_affiliation:
            return _deny("club_mismatch", expected_club=target.club_affiliation)
        return ALLOWED
    if approver.role != "admin":
        return _deny("insufficient_role")
    return ALLOWED


def can_perform(
    account: Optional[Account],
    action: Action,
    context: Optional[Account] = None,
) -> GateDecision:
    """Decide whether ``account`` may perform ``action``.

    Args:
        account: the acting account, or None for an unauthenticated caller.
        action: one of ACTIONS.
        context: the target account; required for ``approve_account``.

    Raises:
        ValueError: unknown action, or approve_account without a target.
    """
    if action not in ACTIONS:
        raise ValueError(f"unknown action: {action!r}")
    if account is None:
        return _deny("unauthenticated")
    if action == "view_results":
        return ALLOWED
    if action == "approve_account":
        if context is None:
            raise ValueError("approve_account requires the target account as context")
        decision = _can_approve(account, context)
    elif account.role not in _ALLOWED_ROLES[action]:
        decision = _deny("insufficient_role")
    else:
        decision = ALLOWED

    # Approval is checked after the role rules.
    if decision.allowed and not account.approved:
        return _deny("not_approved")
    return decision
