# =============================================================================
# Forex API Routes
# =============================================================================
#
# Endpoints:
#   GET  /api/v1/forex/pairs                                 - Supported pairs (public)
#   GET  /api/v1/forex/investments                           - Caller's investments + portfolio
#   POST /api/v1/forex/investments                           - Create investment
#   GET  /api/v1/forex/investments/{investment_id}           - Investment details
#   POST /api/v1/forex/investments/{investment_id}/redeem    - Redeem
#
# =============================================================================

from fastapi import APIRouter, Depends, Request
from pydantic import Field, field_validator

from one_engine.api.boundary import error_boundary
from one_engine.api.deps import get_auth_gate, get_forex_service
from one_engine.api.responses import Terminal, success
from one_engine.api.validation import ApiModel, validate_body, validate_params, validate_query
from one_engine.auth import AuthGate
from one_engine.services import ForexService, InvestmentStatus
from one_engine.services.forex import CYCLE_OPTIONS, MAX_INVESTMENT, MIN_INVESTMENT

router = APIRouter(prefix="/api/v1/forex", tags=["forex"])


class InvestmentListQuery(ApiModel):
    status: InvestmentStatus | None = None


class CreateInvestmentBody(ApiModel):
    amount: float = Field(ge=MIN_INVESTMENT, le=MAX_INVESTMENT)
    selected_pairs: list[str] = Field(min_length=1, max_length=6)
    cycle_days: int

    @field_validator("cycle_days")
    @classmethod
    def known_cycle(cls, v: int) -> int:
        if v not in CYCLE_OPTIONS:
            allowed = ", ".join(str(d) for d in CYCLE_OPTIONS)
            raise ValueError(f"cycleDays must be one of {allowed}")
        return v


class InvestmentParams(ApiModel):
    investment_id: str = Field(min_length=1, max_length=64)


@router.get("/pairs")
@error_boundary("Failed to fetch forex pairs")
async def list_pairs(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    forex: ForexService = Depends(get_forex_service),
):
    principal = await gate.optional_auth(request)
    pairs = forex.list_pairs()

    data = {"pairs": pairs, "total": len(pairs)}
    if principal is not None:
        data["portfolio"] = await forex.get_user_portfolio(principal.user_id)
    return success(data)


@router.get("/investments")
@error_boundary("Failed to fetch investments")
async def list_investments(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    forex: ForexService = Depends(get_forex_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    query = validate_query(request, InvestmentListQuery)
    if isinstance(query, Terminal):
        return query

    user_id = outcome.principal.user_id
    return success({
        "investments": await forex.get_user_investments(user_id, status=query.value.status),
        "portfolio": await forex.get_user_portfolio(user_id),
    })


@router.post("/investments")
@error_boundary("Failed to create investment")
async def create_investment(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    forex: ForexService = Depends(get_forex_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    body = await validate_body(request, CreateInvestmentBody)
    if isinstance(body, Terminal):
        return body

    investment = await forex.create_investment(
        user_id=outcome.principal.user_id,
        amount=body.value.amount,
        selected_pairs=body.value.selected_pairs,
        cycle_days=body.value.cycle_days,
    )
    return success({"investment": investment}, status_code=201)


@router.get("/investments/{investment_id}")
@error_boundary("Failed to fetch investment")
async def get_investment(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    forex: ForexService = Depends(get_forex_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    params = validate_params(request.path_params, InvestmentParams)
    if isinstance(params, Terminal):
        return params

    investment = await forex.get_owned_investment(params.value.investment_id, outcome.principal.user_id)
    return success({"investment": investment})


@router.post("/investments/{investment_id}/redeem")
@error_boundary("Failed to redeem investment")
async def redeem_investment(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    forex: ForexService = Depends(get_forex_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    params = validate_params(request.path_params, InvestmentParams)
    if isinstance(params, Terminal):
        return params

    result = await forex.redeem_investment(params.value.investment_id, outcome.principal.user_id)
    return success(result)
