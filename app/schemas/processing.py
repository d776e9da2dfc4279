# app/schemas/processing.py
from datetime import datetime

from pydantic import BaseModel, Field


class AccountProcessingResult(BaseModel):
    """
    Outcome of one processing pass over an account's meetings.
    """

    account_id: int = Field(..., examples=[1])
    meetings_total: int = Field(
        ...,
        description="Meetings returned by calendar sync for this pass.",
        examples=[6],
    )
    meetings_skipped: int = Field(
        ...,
        description="Meetings already settled (bot invited, recording or completed).",
        examples=[2],
    )
    meetings_matched: int = Field(
        ...,
        description="Meetings for which at least one rule matched.",
        examples=[3],
    )
    bots_invited: int = Field(
        ...,
        description="Bot invitations issued during this pass.",
        examples=[1],
    )


class BulkProcessingSummary(BaseModel):
    """
    Summary payload returned by the /internal/run-meeting-processing endpoint.
    """

    started_at: datetime
    accounts_total: int = Field(..., description="Active accounts found.", examples=[3])
    accounts_processed: int = Field(..., examples=[2])
    accounts_failed: list[int] = Field(
        default_factory=list,
        description="Ids of accounts whose pass raised an error.",
    )
    results: list[AccountProcessingResult | None] = Field(
        ...,
        description=(
            "One entry per active account, in account order. None marks an "
            "account that failed or was already being processed."
        ),
    )
