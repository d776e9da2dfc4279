# app/api/routes/accounts.py
from http import HTTPStatus

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Query

from app.api.dependencies.services import get_services
from app.core.exceptions import AccountNotFoundError
from app.schemas.account import AccountCreate, AccountRead, AccountToggle
from app.schemas.processing import AccountProcessingResult
from app.services.registry import ServiceRegistry

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post(
    "",
    response_model=AccountRead,
    status_code=HTTPStatus.CREATED,
    summary="Register a calendar account",
    description=(
        "Register an account whose calendar should be evaluated against rules.\n\n"
        "The OAuth exchange happens elsewhere; this endpoint only stores the "
        "resulting access token."
    ),
    responses={400: {"description": "An account with the same email already exists."}},
)
async def create_account(
    payload: AccountCreate,
    services: ServiceRegistry = Depends(get_services),
) -> AccountRead:
    try:
        return await services.accounts.create(payload)
    except ValueError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc))


@router.get(
    "",
    response_model=list[AccountRead],
    summary="List accounts",
)
async def list_accounts(
    user_id: str | None = Query(default=None, description="Only accounts of this user."),
    services: ServiceRegistry = Depends(get_services),
) -> list[AccountRead]:
    return await services.accounts.list_accounts(user_id=user_id)


@router.patch(
    "/{account_id}/toggle",
    response_model=AccountRead,
    summary="Enable or disable scheduled processing for an account",
    responses={404: {"description": "No account exists with the given ID."}},
)
async def toggle_account(
    payload: AccountToggle,
    account_id: int = Path(..., ge=1),
    services: ServiceRegistry = Depends(get_services),
) -> AccountRead:
    try:
        return await services.accounts.set_active(account_id, payload.is_active)
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc))


@router.post(
    "/{account_id}/sync",
    response_model=AccountProcessingResult | None,
    summary="Sync and process an account's meetings now",
    description=(
        "Pulls the account's upcoming meetings from the calendar and runs them "
        "through the rule engine.\n\n"
        "Returns `null` when a pass for the same account is already running; "
        "the request is not queued."
    ),
    responses={
        404: {"description": "No account exists with the given ID."},
        502: {"description": "The calendar or the bot invite failed."},
    },
)
async def sync_account(
    account_id: int = Path(..., ge=1),
    services: ServiceRegistry = Depends(get_services),
) -> AccountProcessingResult | None:
    if await services.accounts.get(account_id) is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Account with id {account_id} not found.",
        )

    try:
        return await services.processor.process_account_meetings(account_id)
    except Exception as exc:
        logger.error("accounts.sync_failed", account_id=account_id, error=str(exc))
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail=f"Account sync failed: {exc}",
        )
