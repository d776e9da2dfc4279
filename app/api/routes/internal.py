# app/api/routes/internal.py
from http import HTTPStatus

from fastapi import APIRouter, Depends

from app.api.dependencies.internal_auth import verify_internal_api_key
from app.api.dependencies.services import get_services
from app.schemas.processing import BulkProcessingSummary
from app.services.registry import ServiceRegistry

router = APIRouter(
    prefix="/internal",
    tags=["Internal"],
    dependencies=[Depends(verify_internal_api_key)],
)


@router.post(
    "/run-meeting-processing",
    response_model=BulkProcessingSummary,
    status_code=HTTPStatus.OK,
    summary="Process meetings of all active accounts",
    description=(
        "Syncs every **active account's** upcoming meetings and runs them through "
        "the rule engine, inviting the bot where the primary rule says so.\n\n"
        "Accounts are processed concurrently. A failing account is reported in "
        "`accounts_failed` with a `null` result and never fails the whole call.\n\n"
        "This endpoint is intended to be called from a cron job or scheduler and is "
        "protected via the `X-Internal-Api-Key` header when configured."
    ),
    responses={
        200: {
            "description": "Processing pass completed. A summary is returned.",
            "content": {
                "application/json": {
                    "example": {
                        "started_at": "2025-11-14T10:00:00Z",
                        "accounts_total": 2,
                        "accounts_processed": 1,
                        "accounts_failed": [2],
                        "results": [
                            {
                                "account_id": 1,
                                "meetings_total": 4,
                                "meetings_skipped": 1,
                                "meetings_matched": 2,
                                "bots_invited": 1,
                            },
                            None,
                        ],
                    }
                }
            },
        },
        401: {
            "description": "Missing or invalid internal API key (if configured).",
        },
    },
)
async def run_meeting_processing(
    services: ServiceRegistry = Depends(get_services),
) -> BulkProcessingSummary:
    return await services.processor.process_all_active_accounts()
