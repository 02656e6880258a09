"""
Input validation schemas using Pydantic v2
Validates registration, roster, competition, session and score payloads
before they reach the core.
"""

import logging
import re
from datetime import date, time
from decimal import Decimal
from typing import Annotated, Any, List, Literal, Optional, Type, TypeVar, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationInfo,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .types import APPARATUS_BY_ID, ROLES

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class InputSanitizer:
    """Utility class for input sanitization"""

    @staticmethod
    def sanitize_string(value: str, max_length: int = 255) -> str:
        """Strip, truncate and drop null bytes"""
        if not isinstance(value, str):
            return str(value)[:max_length]
        value = value.strip()
        value = value[:max_length]
        return value.replace("\0", "")

    @staticmethod
    def has_control_chars(value: str) -> bool:
        """True when the value holds null bytes or other control characters"""
        return re.search(r"[\x00-\x1f\x7f]", value) is not None


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ==================== REGISTRATION ====================


class ObserverRegistration(_Payload):
    role: Literal["observer"]


class AdminRegistration(_Payload):
    role: Literal["admin"]


class JudgeRegistration(_Payload):
    role: Literal["judge"]
    judge_id: str = Field(..., alias="judgeId", min_length=1, max_length=64)
    display_name: str = Field(..., alias="displayName", min_length=1, max_length=120)


class ClubRegistration(_Payload):
    role: Literal["club"]
    # Stored verbatim: gymnast approval compares club names exactly.
    club_name: str = Field(..., alias="clubName", min_length=1, max_length=160)
    club_username: str = Field(..., alias="clubUsername", min_length=1, max_length=64)
    location: str = Field(..., min_length=1, max_length=160)


class GymnastRegistration(_Payload):
    role: Literal["gymnast"]
    club_affiliation: str = Field(..., alias="clubAffiliation", min_length=1, max_length=160)


Registration = Annotated[
    Union[
        ObserverRegistration,
        AdminRegistration,
        JudgeRegistration,
        ClubRegistration,
        GymnastRegistration,
    ],
    Field(discriminator="role"),
]

_REGISTRATION = TypeAdapter(Registration)


# ==================== ROSTER ====================


class RosterEntryIn(_Payload):
    first_name: str = Field(..., alias="firstName", min_length=1, max_length=120)
    last_name: str = Field(..., alias="lastName", min_length=1, max_length=120)
    club_name: str = Field(..., alias="clubName", min_length=1, max_length=160)
    level: str = Field(..., min_length=1, max_length=40)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_person_name(cls, v: str) -> str:
        # Kept verbatim: roster matching compares names exactly.
        if not v.strip():
            raise ValueError("name cannot be empty")
        if InputSanitizer.has_control_chars(v):
            raise ValueError("name cannot contain control characters")
        return v

    @field_validator("club_name", "level")
    @classmethod
    def validate_label(cls, v: str) -> str:
        cleaned = InputSanitizer.sanitize_string(v, 160)
        if len(cleaned) == 0:
            raise ValueError("cannot be empty")
        return cleaned


# ==================== COMPETITIONS ====================


class CompetitionIn(_Payload):
    name: str = Field(..., min_length=1, max_length=160)
    venue: str = Field(..., min_length=1, max_length=160)
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator("end_date")
    @classmethod
    def validate_date_range(cls, v: date, info: ValidationInfo) -> date:
        start = info.data.get("start_date")
        if start is not None and v < start:
            raise ValueError("endDate must not be before startDate")
        return v


class SessionIn(_Payload):
    name: str = Field(..., min_length=1, max_length=160)
    date: date
    start_time: time = Field(..., alias="startTime")
    end_time: time = Field(..., alias="endTime")
    level: str = Field(..., min_length=1, max_length=40)

    @field_validator("end_time")
    @classmethod
    def validate_window(cls, v: time, info: ValidationInfo) -> time:
        start = info.data.get("start_time")
        if start is not None and v <= start:
            raise ValueError("endTime must be after startTime")
        return v


# ==================== SCORES ====================


class ScoreSubmission(_Payload):
    """Range checks on the score values belong to scoring.compute()."""

    session_id: int = Field(..., alias="sessionId", ge=1)
    participant_id: int = Field(
        ...,
        validation_alias=AliasChoices("gymnastId", "participantId", "participant_id"),
        ge=1,
    )
    apparatus_id: int = Field(..., alias="apparatusId")
    difficulty: Decimal = Field(..., alias="difficultyScore")
    execution: Decimal = Field(..., alias="executionScore")
    deductions: Decimal = Field(Decimal("0"), alias="deductions")
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("apparatus_id")
    @classmethod
    def validate_apparatus(cls, v: int) -> int:
        if v not in APPARATUS_BY_ID:
            raise ValueError(f"apparatusId must be one of {sorted(APPARATUS_BY_ID)}")
        return v

    @field_validator("difficulty", "execution", "deductions", mode="before")
    @classmethod
    def reject_booleans(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("must be a number")
        return v


# ==================== PARSING ====================


def _field_path(model: Optional[Type[BaseModel]], loc: tuple) -> str:
    parts = [str(part) for part in loc]
    # Discriminated unions prefix the location with the tag value.
    if model is None and parts and parts[0] in ROLES:
        parts = parts[1:]
    if model is not None and parts:
        field = model.model_fields.get(parts[0])
        if field is not None and field.alias:
            parts[0] = field.alias
    if not parts:
        # Missing or unknown role tag on a registration
        return "role" if model is None else "payload"
    return ".".join(parts)


def _to_validation_error(
    exc: PydanticValidationError, model: Optional[Type[BaseModel]], prefix: str = ""
) -> ValidationError:
    first = exc.errors()[0]
    field = _field_path(model, tuple(first.get("loc", ())))
    if prefix:
        field = f"{prefix}.{field}"
    constraint = first.get("msg", "invalid value")
    logger.warning(f"Payload validation failed on {field}: {constraint}")
    return ValidationError(field=field, constraint=constraint)


def parse_payload(model: Type[M], data: Any, *, prefix: str = "") -> "M | ValidationError":
    """Validate ``data`` against ``model``; return the model or a ValidationError."""
    if not isinstance(data, dict):
        return ValidationError(field=prefix or "payload", constraint="must be an object")
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        return _to_validation_error(exc, model, prefix)


def parse_registration(data: Any) -> "Registration | ValidationError":
    """Validate a role-tagged registration payload."""
    if not isinstance(data, dict):
        return ValidationError(field="payload", constraint="must be an object")
    try:
        return _REGISTRATION.validate_python(data)
    except PydanticValidationError as exc:
        return _to_validation_error(exc, None)


def parse_roster(entries: Any) -> "List[RosterEntryIn | ValidationError] | ValidationError":
    """Validate each roster entry on its own.

    Only a non-list payload fails as a whole; a bad entry comes back as a
    ValidationError in its slot so the rest of the batch can still resolve.
    """
    if not isinstance(entries, list):
        return ValidationError(field="entries", constraint="must be a list")
    return [
        parse_payload(RosterEntryIn, entry, prefix=f"entries.{i}")
        for i, entry in enumerate(entries)
    ]


__all__ = [
    "InputSanitizer",
    "ObserverRegistration",
    "AdminRegistration",
    "JudgeRegistration",
    "ClubRegistration",
    "GymnastRegistration",
    "Registration",
    "RosterEntryIn",
    "CompetitionIn",
    "SessionIn",
    "ScoreSubmission",
    "parse_payload",
    "parse_registration",
    "parse_roster",
]
