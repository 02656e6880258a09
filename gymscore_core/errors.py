"""Typed failures returned by core actions.

Core actions never raise for expected domain failures. They return an
``ActionResult`` carrying either a value or one of the error records below,
so the transport layer can point at the exact role, field or entity involved.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Generic, Literal, Optional, TypeVar, Union


DenialReason = Literal[
    "insufficient_role",
    "not_approved",
    "club_mismatch",
    "self_approval",
    "unauthenticated",
]

T = TypeVar("T")


@dataclass(frozen=True)
class PermissionDenied:
    reason: DenialReason
    message: Optional[str] = None
    status_code: int = 403

    kind: ClassVar[str] = "permission_denied"


@dataclass(frozen=True)
class NotFound:
    entity: str
    id: object
    message: Optional[str] = None
    status_code: int = 404

    kind: ClassVar[str] = "not_found"


@dataclass(frozen=True)
class ValidationError:
    """Input rejected at the boundary or by the score calculator."""

    field: str
    constraint: str
    message: Optional[str] = None
    status_code: int = 400

    kind: ClassVar[str] = "validation_error"


@dataclass(frozen=True)
class ApprovalMismatch:
    """A club tried to approve a gymnast affiliated with another club."""

    expected_club: Optional[str]
    message: Optional[str] = None
    status_code: int = 403

    kind: ClassVar[str] = "approval_mismatch"


CoreError = Union[PermissionDenied, NotFound, ValidationError, ApprovalMismatch]


@dataclass(frozen=True)
class ActionResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[CoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ActionResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: CoreError) -> "ActionResult[T]":
        return cls(error=error)


def error_payload(error: CoreError) -> dict:
    """Render an error as a JSON-ready dict for the transport layer."""
    payload: dict = {"kind": error.kind, "statusCode": error.status_code}
    if isinstance(error, PermissionDenied):
        payload["reason"] = error.reason
    elif isinstance(error, NotFound):
        payload["entity"] = error.entity
        payload["id"] = error.id
    elif isinstance(error, ValidationError):
        payload["field"] = error.field
        payload["constraint"] = error.constraint
    elif isinstance(error, ApprovalMismatch):
        payload["expectedClub"] = error.expected_club
    if error.message:
        payload["message"] = error.message
    return payload
