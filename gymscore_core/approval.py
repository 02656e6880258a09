"""Account approval state machine.

    pending_approval --approve--> approved   (terminal)
    pending_approval --reject---> removed    (terminal; the record is deleted)

Observers start out approved. Approving twice is a no-op success. Rejection
deletes the account outright with no soft-delete or rejected flag; the only
trail left is the WARNING log line written here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Literal, Optional

from .errors import ActionResult, NotFound, PermissionDenied, ValidationError
from .role_gate import can_perform
from .store import ScoreStore
from .types import Account

logger = logging.getLogger(__name__)


ApprovalState = Literal["pending_approval", "approved", "removed"]

# Roles an admin reviews; gymnasts are reviewed by their own club.
_ADMIN_REVIEWED = ("judge", "club", "admin")


@dataclass(frozen=True)
class ApprovalOutcome:
    account_id: str
    state: ApprovalState
    account: Optional[Account] = None
    # True when the account was already approved and nothing changed.
    already_approved: bool = False


def approval_state(account: Optional[Account]) -> ApprovalState:
    if account is None:
        return "removed"
    return "approved" if account.approved else "pending_approval"


def participant_approved(account: Optional[Account]) -> bool:
    """Approval flag a participant record inherits from its account.

    Provisional records (no account) are approved on creation.
    """
    if account is None:
        return True
    return account.approved


def new_account(
    registration,
    *,
    account_id: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    email: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Account:
    """Build an account from a validated registration payload.

    ``registration`` is one of the role-tagged models in ``validation``.
    Only observers are created approved.
    """
    role = registration.role
    return Account(
        id=account_id,
        role=role,
        approved=role == "observer",
        first_name=first_name,
        last_name=last_name,
        email=email,
        judge_id=getattr(registration, "judge_id", None),
        display_name=getattr(registration, "display_name", None),
        club_name=getattr(registration, "club_name", None),
        club_username=getattr(registration, "club_username", None),
        location=getattr(registration, "location", None),
        club_affiliation=getattr(registration, "club_affiliation", None),
        created_at=created_at,
    )


def _load_and_authorize(
    store: ScoreStore, account_id: str, approver: Optional[Account]
) -> "Account | ActionResult[ApprovalOutcome]":
    target = store.get_account(account_id)
    if target is None:
        return ActionResult.failure(NotFound(entity="account", id=account_id))
    decision = can_perform(approver, "approve_account", target)
    if not decision.allowed:
        approver_id = approver.id if approver is not None else None
        logger.warning(
            f"Approval action on {account_id} denied for {approver_id}: {decision.reason}"
        )
        return ActionResult.failure(decision.to_error())
    return target


def approve(
    store: ScoreStore, account_id: str, approver: Optional[Account]
) -> ActionResult[ApprovalOutcome]:
    loaded = _load_and_authorize(store, account_id, approver)
    if isinstance(loaded, ActionResult):
        return loaded
    target = loaded
    if target.approved:
        logger.debug(f"Account {account_id} already approved")
        return ActionResult.success(
            ApprovalOutcome(
                account_id=account_id, state="approved", account=target, already_approved=True
            )
        )
    updated = store.upsert_account(replace(target, approved=True))
    logger.info(f"Account {account_id} ({target.role}) approved by {approver.id}")
    return ActionResult.success(
        ApprovalOutcome(account_id=account_id, state="approved", account=updated)
    )


def reject(
    store: ScoreStore, account_id: str, approver: Optional[Account]
) -> ActionResult[ApprovalOutcome]:
    """Delete a pending account. Irreversible."""
    loaded = _load_and_authorize(store, account_id, approver)
    if isinstance(loaded, ActionResult):
        return loaded
    target = loaded
    if target.approved:
        return ActionResult.failure(
            ValidationError(field="approved", constraint="approved accounts cannot be rejected")
        )
    if not store.delete_account(account_id):
        # Lost a race with another rejection.
        return ActionResult.failure(NotFound(entity="account", id=account_id))
    logger.warning(
        f"Account {account_id} ({target.role}) rejected and removed by {approver.id}"
    )
    return ActionResult.success(ApprovalOutcome(account_id=account_id, state="removed"))


def pending_accounts(
    store: ScoreStore, viewer: Optional[Account]
) -> ActionResult[list[Account]]:
    """Accounts awaiting a decision that ``viewer`` is allowed to make."""
    if viewer is None:
        return ActionResult.failure(PermissionDenied(reason="unauthenticated"))
    if viewer.role in ("admin", "club") and not viewer.approved:
        return ActionResult.failure(PermissionDenied(reason="not_approved"))
    if viewer.role == "admin":
        pending = [
            account
            for role in _ADMIN_REVIEWED
            for account in store.get_accounts_by_role(role)
            if not account.approved
        ]
    elif viewer.role == "club":
        pending = [
            account
            for account in store.get_accounts_by_role("gymnast")
            if not account.approved
            and viewer.club_name is not None
            and account.club_affiliation == viewer.club_name
        ]
    else:
        return ActionResult.failure(PermissionDenied(reason="insufficient_role"))
    return ActionResult.success(sorted(pending, key=lambda account: account.id))
