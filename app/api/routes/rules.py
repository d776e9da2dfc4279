# app/api/routes/rules.py
from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from app.api.dependencies.services import get_services
from app.core.exceptions import RuleNotFoundError
from app.schemas.rule import RuleCreate, RuleRead, RuleTestRequest, RuleTestResult, RuleUpdate
from app.services.registry import ServiceRegistry
from app.services.rule_cache import invalidate_rule_scope

router = APIRouter(prefix="/rules", tags=["Rules"])


async def _ensure_account_exists(services: ServiceRegistry, account_id: int | None) -> None:
    if account_id is None:
        return
    if await services.accounts.get(account_id) is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Account with id {account_id} not found.",
        )


@router.post(
    "",
    response_model=RuleRead,
    status_code=HTTPStatus.CREATED,
    summary="Create a meeting rule",
    description=(
        "Create a rule for one account (`account_id`) or for every account "
        "(`is_global: true`).\n\n"
        "All condition fields are optional; the rule matches a meeting when every "
        "condition that is present holds. The highest-priority matching rule "
        "decides whether the bot is invited."
    ),
    responses={
        201: {
            "description": "Rule created.",
            "content": {
                "application/json": {
                    "example": {
                        "id": 1,
                        "name": "Record standups",
                        "account_id": 1,
                        "is_global": False,
                        "conditions": {
                            "min_duration": 15,
                            "title_keywords": ["standup"],
                            "required_platforms": ["zoom"],
                        },
                        "actions": {"invite_bot": True, "notify_user": False},
                        "priority": 5,
                        "is_active": True,
                    }
                }
            },
        },
        404: {"description": "Referenced account does not exist."},
        422: {"description": "Invalid conditions, actions or scope."},
    },
)
async def create_rule(
    payload: RuleCreate,
    services: ServiceRegistry = Depends(get_services),
) -> RuleRead:
    await _ensure_account_exists(services, payload.account_id)

    rule = await services.rules.save(payload)
    invalidate_rule_scope(services.rule_cache, rule)
    return rule


@router.get(
    "",
    response_model=list[RuleRead],
    summary="List rules",
    description=(
        "List rules ordered the way the engine applies them: priority descending, "
        "then oldest first.\n\n"
        "With `account_id`, returns that account's rules plus global rules "
        "(unless `include_global=false`)."
    ),
)
async def list_rules(
    account_id: int | None = Query(default=None, ge=1, examples=[1]),
    include_global: bool = Query(default=True),
    only_active: bool | None = Query(
        default=None,
        description="true = active only, false = inactive only, omitted = all.",
    ),
    services: ServiceRegistry = Depends(get_services),
) -> list[RuleRead]:
    return await services.rules.list_rules(
        account_id=account_id,
        include_global=include_global,
        only_active=only_active,
    )


@router.get(
    "/{rule_id}",
    response_model=RuleRead,
    summary="Get rule details by ID",
    responses={404: {"description": "No rule exists with the given ID."}},
)
async def get_rule(
    rule_id: int = Path(..., description="Numeric ID of the rule.", ge=1),
    services: ServiceRegistry = Depends(get_services),
) -> RuleRead:
    rule = await services.rules.get(rule_id)
    if rule is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Rule with id {rule_id} not found.",
        )
    return rule


@router.patch(
    "/{rule_id}",
    response_model=RuleRead,
    summary="Partially update a rule",
    description=(
        "Only fields provided in the request body are modified. `conditions` and "
        "`actions` are replaced as a whole when provided.\n\n"
        "The change is visible to the very next evaluation."
    ),
    responses={
        400: {"description": "The merged scope is invalid."},
        404: {"description": "No rule exists with the given ID."},
    },
)
async def update_rule(
    payload: RuleUpdate,
    rule_id: int = Path(..., description="Numeric ID of the rule to update.", ge=1),
    services: ServiceRegistry = Depends(get_services),
) -> RuleRead:
    if "account_id" in payload.model_fields_set:
        await _ensure_account_exists(services, payload.account_id)

    try:
        before, after = await services.rules.update(rule_id, payload)
    except RuleNotFoundError as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc))

    invalidate_rule_scope(services.rule_cache, before, after)
    return after


@router.delete(
    "/{rule_id}",
    status_code=HTTPStatus.NO_CONTENT,
    summary="Delete a rule",
    responses={404: {"description": "No rule exists with the given ID."}},
)
async def delete_rule(
    rule_id: int = Path(..., description="Numeric ID of the rule to delete.", ge=1),
    services: ServiceRegistry = Depends(get_services),
) -> None:
    try:
        deleted = await services.rules.delete(rule_id)
    except RuleNotFoundError as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc))

    invalidate_rule_scope(services.rule_cache, deleted)


@router.post(
    "/{rule_id}/test",
    response_model=RuleTestResult,
    summary="Evaluate one rule against a stored meeting",
    description=(
        "Dry run: reports whether the rule's conditions match the meeting. "
        "No bot is invited and the meeting is not modified."
    ),
    responses={404: {"description": "Rule or meeting not found."}},
)
async def run_rule_test(
    payload: RuleTestRequest,
    rule_id: int = Path(..., description="Numeric ID of the rule to test.", ge=1),
    services: ServiceRegistry = Depends(get_services),
) -> RuleTestResult:
    rule = await services.rules.get(rule_id)
    if rule is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Rule with id {rule_id} not found.",
        )

    meeting = await services.meetings.get(payload.meeting_id)
    if meeting is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Meeting with id {payload.meeting_id} not found.",
        )

    return RuleTestResult(
        matches=services.evaluator.test_rule(rule, meeting),
        rule_id=rule.id,
        rule_name=rule.name,
        conditions=rule.conditions,
        meeting_id=meeting.id,
        meeting_title=meeting.title,
        meeting_start_time=meeting.start_time,
        attendee_count=len(meeting.attendees),
        platform=meeting.platform,
    )
