"""
AI quant service - strategy subscriptions ("orders").

The trading engine that moves a strategy's NAV is an external system.
This service keeps the order lifecycle:

    active <-> paused -> pending_redemption
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from one_engine.core.utils import generate_id, utc_now
from one_engine.services.errors import (
    DomainValidationError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from one_engine.storage import Collections, StorageProvider

logger = logging.getLogger(__name__)

# Early withdrawal penalty at 0% lock completion; scales down to 0 at 100%
MAX_EARLY_WITHDRAWAL_PENALTY = 0.1


class OrderStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    PENDING_REDEMPTION = "pending_redemption"
    REDEEMED = "redeemed"
    CANCELLED = "cancelled"


class Strategy(BaseModel):
    id: str
    name: str
    description: str = ""
    risk_level: str = "medium"
    min_investment: float
    max_investment: float | None = None
    lock_period_days: int
    performance_fee_rate: float = 0.2
    current_nav: float = 1.0
    tvl: float = 0.0
    is_active: bool = True


class Order(BaseModel):
    id: str
    user_id: str
    strategy_id: str
    amount: float
    currency: str = "USDT"
    chain: str = "ethereum"
    shares: float
    lock_period_days: int
    start_date: datetime
    lock_end_date: datetime
    status: OrderStatus = OrderStatus.ACTIVE
    pause_count: int = 0
    total_pause_days: int = 0
    current_pause_start: datetime | None = None
    tx_hash_deposit: str | None = None
    redemption_requested_at: datetime | None = None
    redemption_amount: float | None = None
    created_at: datetime = Field(default_factory=utc_now)


DEFAULT_STRATEGIES: list[Strategy] = [
    Strategy(
        id="6f1f9a52-3c1e-4c55-9d0e-1b2a3c4d5e01",
        name="Stable Yield",
        description="Market-neutral stablecoin carry",
        risk_level="low",
        min_investment=100,
        max_investment=500_000,
        lock_period_days=30,
        performance_fee_rate=0.1,
    ),
    Strategy(
        id="6f1f9a52-3c1e-4c55-9d0e-1b2a3c4d5e02",
        name="Trend Alpha",
        description="Momentum on majors",
        risk_level="medium",
        min_investment=500,
        lock_period_days=90,
        performance_fee_rate=0.2,
    ),
    Strategy(
        id="6f1f9a52-3c1e-4c55-9d0e-1b2a3c4d5e03",
        name="Legacy Grid",
        description="Closed to new investments",
        risk_level="high",
        min_investment=1_000,
        lock_period_days=180,
        is_active=False,
    ),
]


class AiQuantService:
    def __init__(self, storage: StorageProvider):
        self.storage = storage

    async def seed_strategies(self, strategies: list[Strategy] | None = None) -> None:
        for strategy in strategies or DEFAULT_STRATEGIES:
            await self.storage.metadata.save(
                Collections.AI_STRATEGIES, strategy.id, strategy.model_dump(mode="json")
            )

    # -------------------------------------------------------------------------
    # Strategies
    # -------------------------------------------------------------------------

    async def list_strategies(self, active_only: bool = True) -> list[Strategy]:
        filters = {"is_active": True} if active_only else None
        rows = await self.storage.metadata.query(Collections.AI_STRATEGIES, filters)
        return [Strategy.model_validate(r) for r in rows]

    async def get_strategy(self, strategy_id: str) -> Strategy | None:
        data = await self.storage.metadata.get(Collections.AI_STRATEGIES, strategy_id)
        return Strategy.model_validate(data) if data else None

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    async def create_order(
        self,
        user_id: str,
        strategy_id: str,
        amount: float,
        currency: str = "USDT",
        chain: str = "ethereum",
        lock_period_days: int | None = None,
        tx_hash_deposit: str | None = None,
    ) -> Order:
        strategy = await self.get_strategy(strategy_id)
        if strategy is None:
            raise NotFoundError("Strategy")
        if not strategy.is_active:
            raise InvalidStateError("Strategy is not accepting new investments")
        if amount < strategy.min_investment:
            raise DomainValidationError(f"Minimum investment is {strategy.min_investment}")
        if strategy.max_investment and amount > strategy.max_investment:
            raise DomainValidationError(f"Maximum investment is {strategy.max_investment}")

        lock_days = lock_period_days or strategy.lock_period_days
        start = utc_now()
        order = Order(
            id=generate_id("ord"),
            user_id=user_id,
            strategy_id=strategy_id,
            amount=amount,
            currency=currency,
            chain=chain,
            shares=amount / (strategy.current_nav or 1),
            lock_period_days=lock_days,
            start_date=start,
            lock_end_date=start + timedelta(days=lock_days),
            tx_hash_deposit=tx_hash_deposit,
        )
        await self._save(order)
        await self.storage.metadata.update(
            Collections.AI_STRATEGIES, strategy_id, {"tvl": strategy.tvl + amount}
        )

        logger.info(f"Created AI order {order.id} for {user_id} on {strategy_id} ({amount})")
        return order

    async def get_order(self, order_id: str) -> Order | None:
        data = await self.storage.metadata.get(Collections.AI_ORDERS, order_id)
        return Order.model_validate(data) if data else None

    async def get_user_orders(
        self,
        user_id: str,
        strategy_id: str | None = None,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        filters: dict[str, Any] = {"user_id": user_id}
        if strategy_id:
            filters["strategy_id"] = strategy_id
        if status:
            filters["status"] = status.value
        rows = await self.storage.metadata.query(Collections.AI_ORDERS, filters, limit=1_000)
        orders = [Order.model_validate(r) for r in rows]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    async def get_owned_order(self, order_id: str, user_id: str) -> Order:
        order = await self.get_order(order_id)
        if order is None:
            raise NotFoundError("Order")
        if order.user_id != user_id:
            raise PermissionDeniedError("Not authorized to access this order")
        return order

    async def pause_order(self, order_id: str, user_id: str) -> Order:
        order = await self.get_owned_order(order_id, user_id)
        if order.status != OrderStatus.ACTIVE:
            raise InvalidStateError("Order is not active")

        await self.storage.metadata.update(Collections.AI_ORDERS, order_id, {
            "status": OrderStatus.PAUSED.value,
            "current_pause_start": utc_now().isoformat(),
            "pause_count": order.pause_count + 1,
        })
        logger.info(f"Order paused: {order_id}")
        return await self.get_order(order_id)

    async def resume_order(self, order_id: str, user_id: str) -> Order:
        order = await self.get_owned_order(order_id, user_id)
        if order.status != OrderStatus.PAUSED:
            raise InvalidStateError("Order is not paused")

        pause_days = order.total_pause_days
        if order.current_pause_start:
            pause_days += _days_between(order.current_pause_start, utc_now())

        await self.storage.metadata.update(Collections.AI_ORDERS, order_id, {
            "status": OrderStatus.ACTIVE.value,
            "current_pause_start": None,
            "total_pause_days": pause_days,
        })
        logger.info(f"Order resumed: {order_id} (pause days {pause_days})")
        return await self.get_order(order_id)

    async def request_redemption(self, order_id: str, user_id: str) -> dict[str, Any]:
        """
        Move an order to pending_redemption and price the payout.

        Early withdrawal (before lock end) pays a penalty proportional to
        the uncompleted share of the lock period; pause days don't count
        as completed. A performance fee is taken on profit.
        """
        order = await self.get_owned_order(order_id, user_id)
        if order.status in (OrderStatus.REDEEMED, OrderStatus.CANCELLED):
            raise InvalidStateError("Order already redeemed or cancelled")

        strategy = await self.get_strategy(order.strategy_id)
        if strategy is None:
            raise NotFoundError("Strategy")

        now = utc_now()
        current_value = order.shares * strategy.current_nav
        profit = current_value - order.amount

        penalty_rate = 0.0
        completion_rate = 1.0
        if now < order.lock_end_date:
            days_completed = max(0, _days_between(order.start_date, now) - order.total_pause_days)
            completion_rate = min(1.0, days_completed / order.lock_period_days)
            penalty_rate = MAX_EARLY_WITHDRAWAL_PENALTY * (1 - completion_rate)

        penalty_amount = current_value * penalty_rate
        performance_fee = profit * strategy.performance_fee_rate if profit > 0 else 0.0
        final_amount = current_value - penalty_amount - performance_fee

        await self.storage.metadata.update(Collections.AI_ORDERS, order_id, {
            "status": OrderStatus.PENDING_REDEMPTION.value,
            "redemption_requested_at": now.isoformat(),
            "redemption_amount": current_value,
        })
        await self.storage.metadata.update(
            Collections.AI_STRATEGIES, strategy.id, {"tvl": max(0.0, strategy.tvl - order.amount)}
        )

        logger.info(f"Redemption requested: {order_id} final={final_amount:.2f}")
        return {
            "amount": current_value,
            "penalty_rate": penalty_rate,
            "penalty_amount": penalty_amount,
            "performance_fee": performance_fee,
            "completion_rate": completion_rate,
            "final_amount": final_amount,
        }

    async def count_orders(self, status: OrderStatus | None = None) -> int:
        filters = {"status": status.value} if status else None
        return await self.storage.metadata.count(Collections.AI_ORDERS, filters)

    async def _save(self, order: Order) -> None:
        await self.storage.metadata.save(Collections.AI_ORDERS, order.id, order.model_dump(mode="json"))


def _days_between(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / 86_400)
