# =============================================================================
# AI Quant API Routes
# =============================================================================
#
# Endpoints:
#   GET  /api/v1/ai-quant/strategies                 - Strategies (public)
#   GET  /api/v1/ai-quant/orders                     - Caller's orders
#   POST /api/v1/ai-quant/orders                     - Subscribe to a strategy
#   GET  /api/v1/ai-quant/orders/{order_id}          - Order + strategy
#   POST /api/v1/ai-quant/orders/{order_id}/pause    - Pause an active order
#   POST /api/v1/ai-quant/orders/{order_id}/resume   - Resume a paused order
#   POST /api/v1/ai-quant/orders/{order_id}/redeem   - Request redemption
#
# =============================================================================

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from pydantic import Field

from one_engine.api.boundary import error_boundary
from one_engine.api.deps import get_auth_gate, get_quant_service
from one_engine.api.responses import Terminal, success
from one_engine.api.validation import Amount, ApiModel, validate_body, validate_params, validate_query
from one_engine.auth import AuthGate
from one_engine.services import AiQuantService, OrderStatus

router = APIRouter(prefix="/api/v1/ai-quant", tags=["ai-quant"])


class StrategyQuery(ApiModel):
    risk_level: Literal["low", "medium", "high"] | None = None


class OrderListQuery(ApiModel):
    strategy_id: str | None = None
    status: OrderStatus | None = None


class CreateOrderBody(ApiModel):
    strategy_id: UUID
    amount: Amount
    currency: str = "USDT"
    chain: str = "ethereum"
    lock_period_days: int | None = Field(default=None, gt=0)
    tx_hash_deposit: str | None = None


class OrderParams(ApiModel):
    order_id: str = Field(min_length=1, max_length=64)


@router.get("/strategies")
@error_boundary("Failed to fetch strategies")
async def list_strategies(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    quant: AiQuantService = Depends(get_quant_service),
):
    principal = await gate.optional_auth(request)

    query = validate_query(request, StrategyQuery)
    if isinstance(query, Terminal):
        return query

    strategies = await quant.list_strategies()
    if query.value.risk_level:
        strategies = [s for s in strategies if s.risk_level == query.value.risk_level]

    data = {"strategies": [s.model_dump(mode="json") for s in strategies]}
    if principal is not None:
        orders = await quant.get_user_orders(principal.user_id)
        data["subscribed_strategy_ids"] = sorted({o.strategy_id for o in orders})
    return success(data)


@router.get("/orders")
@error_boundary("Failed to fetch orders")
async def list_orders(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    quant: AiQuantService = Depends(get_quant_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    query = validate_query(request, OrderListQuery)
    if isinstance(query, Terminal):
        return query

    orders = await quant.get_user_orders(
        outcome.principal.user_id,
        strategy_id=query.value.strategy_id,
        status=query.value.status,
    )
    return success({"orders": [o.model_dump(mode="json") for o in orders]})


@router.post("/orders")
@error_boundary("Failed to create order")
async def create_order(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    quant: AiQuantService = Depends(get_quant_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    body = await validate_body(request, CreateOrderBody)
    if isinstance(body, Terminal):
        return body

    order = await quant.create_order(
        user_id=outcome.principal.user_id,
        strategy_id=str(body.value.strategy_id),
        amount=body.value.amount,
        currency=body.value.currency,
        chain=body.value.chain,
        lock_period_days=body.value.lock_period_days,
        tx_hash_deposit=body.value.tx_hash_deposit,
    )
    return success({"order": order.model_dump(mode="json")}, status_code=201)


@router.get("/orders/{order_id}")
@error_boundary("Failed to fetch order")
async def get_order(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    quant: AiQuantService = Depends(get_quant_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    params = validate_params(request.path_params, OrderParams)
    if isinstance(params, Terminal):
        return params

    order = await quant.get_owned_order(params.value.order_id, outcome.principal.user_id)
    strategy = await quant.get_strategy(order.strategy_id)
    return success({"order": order, "strategy": strategy})


@router.post("/orders/{order_id}/pause")
@error_boundary("Failed to pause order")
async def pause_order(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    quant: AiQuantService = Depends(get_quant_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    params = validate_params(request.path_params, OrderParams)
    if isinstance(params, Terminal):
        return params

    order = await quant.pause_order(params.value.order_id, outcome.principal.user_id)
    return success({"order": order, "message": "Order paused"})


@router.post("/orders/{order_id}/resume")
@error_boundary("Failed to resume order")
async def resume_order(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    quant: AiQuantService = Depends(get_quant_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    params = validate_params(request.path_params, OrderParams)
    if isinstance(params, Terminal):
        return params

    order = await quant.resume_order(params.value.order_id, outcome.principal.user_id)
    return success({"order": order, "message": "Order resumed"})


@router.post("/orders/{order_id}/redeem")
@error_boundary("Failed to request redemption")
async def redeem_order(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    quant: AiQuantService = Depends(get_quant_service),
):
    outcome = await gate.require_auth(request)
    if isinstance(outcome, Terminal):
        return outcome

    params = validate_params(request.path_params, OrderParams)
    if isinstance(params, Terminal):
        return params

    redemption = await quant.request_redemption(params.value.order_id, outcome.principal.user_id)
    return success({"redemption": redemption, "message": "Redemption requested"})
