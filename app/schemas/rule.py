# app/schemas/rule.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator, model_validator

from app.schemas.meeting import MeetingPlatform

Keyword = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
DayOfWeek = Annotated[int, Field(ge=0, le=6)]

_HHMM_PATTERN = r"^([01][0-9]|2[0-3]):[0-5][0-9]$"


# --------------------------------------------------------------------------
# Conditions / actions
# --------------------------------------------------------------------------

class TimeOfDayWindow(BaseModel):
    """
    Inclusive "HH:MM" window checked against the meeting start time as
    stored, which is UTC. No per-account time zone is applied.

    Values are zero padded on input ("9:05" becomes "09:05") so that plain
    string comparison orders them correctly.
    """

    model_config = ConfigDict(extra="forbid")

    start: str = Field(..., pattern=_HHMM_PATTERN, examples=["09:00"])
    end: str = Field(..., pattern=_HHMM_PATTERN, examples=["17:30"])

    @field_validator("start", "end", mode="before")
    @classmethod
    def _zero_pad(cls, value):
        if isinstance(value, str) and ":" in value:
            hours, _, minutes = value.strip().partition(":")
            if hours.isdigit() and len(hours) == 1:
                return f"0{hours}:{minutes}"
        return value

    @model_validator(mode="after")
    def _check_order(self) -> "TimeOfDayWindow":
        if self.start > self.end:
            raise ValueError("time_of_day.start must not be later than time_of_day.end")
        return self


class RuleConditions(BaseModel):
    """
    Structured predicate set of a rule.

    Every field is optional and an absent field imposes no constraint.
    Numeric bounds are inclusive, and zero is a real bound.
    """

    model_config = ConfigDict(extra="forbid")

    min_duration: int | None = Field(default=None, ge=0, le=1440, description="Minutes.")
    max_duration: int | None = Field(default=None, ge=0, le=1440, description="Minutes.")
    min_attendees: int | None = Field(default=None, ge=0)
    max_attendees: int | None = Field(default=None, ge=0)
    title_keywords: list[Keyword] | None = Field(default=None, max_length=20)
    title_exclusions: list[Keyword] | None = Field(default=None, max_length=20)
    attendee_keywords: list[Keyword] | None = Field(default=None, max_length=20)
    time_of_day: TimeOfDayWindow | None = Field(
        default=None,
        description="Compared with the stored UTC start time of the meeting.",
    )
    days_of_week: list[DayOfWeek] | None = Field(
        default=None,
        max_length=7,
        description="0 = Sunday ... 6 = Saturday, taken from the stored UTC start time.",
    )
    required_platforms: list[MeetingPlatform] | None = Field(default=None, max_length=5)

    @model_validator(mode="after")
    def _check_bounds(self) -> "RuleConditions":
        if (
            self.min_duration is not None
            and self.max_duration is not None
            and self.min_duration > self.max_duration
        ):
            raise ValueError("min_duration must be less than or equal to max_duration")
        if (
            self.min_attendees is not None
            and self.max_attendees is not None
            and self.min_attendees > self.max_attendees
        ):
            raise ValueError("min_attendees must be less than or equal to max_attendees")
        return self


class RuleActions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    invite_bot: bool = True
    notify_user: bool = False
    custom_message: str | None = Field(default=None, max_length=500)


def validate_rule_scope(account_id: int | None, is_global: bool) -> None:
    """
    A rule belongs to exactly one scope: one account, or every account.
    """
    if is_global and account_id is not None:
        raise ValueError("A global rule must not reference an account_id.")
    if not is_global and account_id is None:
        raise ValueError("account_id is required unless the rule is global.")


@dataclass(frozen=True)
class RuleScope:
    """
    Query parameter for the rule store: the rules of one account, optionally
    together with the global rules.
    """

    account_id: int | None
    include_global: bool = True
    active_only: bool = True

    @classmethod
    def for_account(cls, account_id: int) -> "RuleScope":
        return cls(account_id=account_id, include_global=True, active_only=True)


# --------------------------------------------------------------------------
# Create / update / read
# --------------------------------------------------------------------------

class RuleBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Record standups"])
    description: str | None = Field(default=None, max_length=500)
    account_id: int | None = Field(
        default=None,
        description="Owning account. Must be omitted for global rules.",
        examples=[1],
    )
    is_global: bool = Field(default=False, description="Applies to every account.")
    conditions: RuleConditions = Field(default_factory=RuleConditions)
    actions: RuleActions = Field(default_factory=RuleActions)
    priority: int = Field(default=1, description="Higher wins.", examples=[5])
    is_active: bool = True


class RuleCreate(RuleBase):
    """
    Schema for creating a new rule.
    """

    @model_validator(mode="after")
    def _check_scope(self) -> "RuleCreate":
        validate_rule_scope(self.account_id, self.is_global)
        return self


class RuleUpdate(BaseModel):
    """
    Schema for updating a rule.
    All fields are optional; only provided fields are updated.
    """

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    account_id: int | None = None
    is_global: bool | None = None
    conditions: RuleConditions | None = None
    actions: RuleActions | None = None
    priority: int | None = None
    is_active: bool | None = None


class RuleRead(RuleBase):
    """
    Response schema for a rule, and the shape the rule engine evaluates.
    """

    id: int = Field(..., examples=[3])
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class RuleTestRequest(BaseModel):
    meeting_id: int = Field(..., ge=1, examples=[42])


class RuleTestResult(BaseModel):
    """
    Outcome of evaluating one rule against one stored meeting.
    """

    matches: bool
    rule_id: int
    rule_name: str
    conditions: RuleConditions
    meeting_id: int
    meeting_title: str
    meeting_start_time: datetime
    attendee_count: int
    platform: MeetingPlatform | None = None
