"""
Forex service - USDC stablecoin pair investments.

Pricing and trade execution live in an external engine; this service
owns investment creation, the user's portfolio view and redemption.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
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

MIN_INVESTMENT = 100
MAX_INVESTMENT = 1_000_000

# Share of each investment routed to the clearing / hedging / insurance pools
POOL_SPLIT = {"clearing": 0.50, "hedging": 0.30, "insurance": 0.20}


class InvestmentStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    REDEEMED = "redeemed"
    CANCELLED = "cancelled"


class CurrencyPair(BaseModel):
    id: str
    base: str
    quote: str
    symbol: str
    name: str
    base_price: float
    pip_size: float
    spread_pips: float
    is_active: bool = True


@dataclass(frozen=True)
class CycleOption:
    days: int
    fee_rate: float
    commission_rate: float

    @property
    def label(self) -> str:
        return f"{self.days}D"


FOREX_PAIRS: list[CurrencyPair] = [
    CurrencyPair(id="USDC_EURC", base="USDC", quote="EURC", symbol="USDC/EURC", name="Euro",
                 base_price=0.9230, pip_size=0.0001, spread_pips=1.2),
    CurrencyPair(id="USDC_GBPC", base="USDC", quote="GBPC", symbol="USDC/GBPC", name="British Pound",
                 base_price=0.7890, pip_size=0.0001, spread_pips=1.5),
    CurrencyPair(id="USDC_JPYC", base="USDC", quote="JPYC", symbol="USDC/JPYC", name="Japanese Yen",
                 base_price=154.50, pip_size=0.01, spread_pips=1.0),
    CurrencyPair(id="USDC_AUDC", base="USDC", quote="AUDC", symbol="USDC/AUDC", name="Australian Dollar",
                 base_price=1.5380, pip_size=0.0001, spread_pips=1.8),
    CurrencyPair(id="USDC_CADC", base="USDC", quote="CADC", symbol="USDC/CADC", name="Canadian Dollar",
                 base_price=1.3640, pip_size=0.0001, spread_pips=1.5),
    CurrencyPair(id="USDC_CHFC", base="USDC", quote="CHFC", symbol="USDC/CHFC", name="Swiss Franc",
                 base_price=0.8750, pip_size=0.0001, spread_pips=1.3),
]

CYCLE_OPTIONS: dict[int, CycleOption] = {
    c.days: c
    for c in (
        CycleOption(30, 0.10, 0.60),
        CycleOption(60, 0.08, 0.70),
        CycleOption(90, 0.07, 0.75),
        CycleOption(180, 0.05, 0.85),
        CycleOption(360, 0.03, 0.90),
    )
}


class Investment(BaseModel):
    id: str
    user_id: str
    amount: float
    current_value: float
    profit: float = 0.0
    status: InvestmentStatus = InvestmentStatus.ACTIVE
    selected_pairs: list[str]
    cycle_days: int
    fee_rate: float
    commission_rate: float
    pool_allocations: dict[str, float]
    trade_weight: float
    total_trades: int = 0
    start_date: datetime
    end_date: datetime
    redeemed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)


class ForexService:
    def __init__(self, storage: StorageProvider):
        self.storage = storage

    # -------------------------------------------------------------------------
    # Pairs
    # -------------------------------------------------------------------------

    def list_pairs(self) -> list[CurrencyPair]:
        return [p for p in FOREX_PAIRS if p.is_active]

    def get_pair(self, pair_id: str) -> CurrencyPair | None:
        return next((p for p in FOREX_PAIRS if p.id == pair_id), None)

    # -------------------------------------------------------------------------
    # Investments
    # -------------------------------------------------------------------------

    async def create_investment(
        self,
        user_id: str,
        amount: float,
        selected_pairs: list[str],
        cycle_days: int,
    ) -> Investment:
        if amount < MIN_INVESTMENT:
            raise DomainValidationError(f"Minimum investment is ${MIN_INVESTMENT}")
        if amount > MAX_INVESTMENT:
            raise DomainValidationError(f"Maximum investment is ${MAX_INVESTMENT}")

        if not selected_pairs:
            raise DomainValidationError("At least one currency pair is required")
        for pair_id in selected_pairs:
            if self.get_pair(pair_id) is None:
                raise DomainValidationError(f"Invalid pair: {pair_id}")

        cycle = CYCLE_OPTIONS.get(cycle_days)
        if cycle is None:
            raise DomainValidationError(f"Invalid cycle: {cycle_days} days")

        pool_size = await self._active_pool_size()
        start = utc_now()
        investment = Investment(
            id=generate_id("fx"),
            user_id=user_id,
            amount=amount,
            current_value=amount,
            selected_pairs=list(selected_pairs),
            cycle_days=cycle_days,
            fee_rate=cycle.fee_rate,
            commission_rate=cycle.commission_rate,
            pool_allocations={pool: amount * share for pool, share in POOL_SPLIT.items()},
            trade_weight=amount / (pool_size + amount),
            start_date=start,
            end_date=start + timedelta(days=cycle_days),
        )
        await self.storage.metadata.save(
            Collections.FOREX_INVESTMENTS, investment.id, investment.model_dump(mode="json")
        )

        logger.info(
            f"Created forex investment {investment.id} for {user_id}: "
            f"{amount} over {len(selected_pairs)} pairs, {cycle.label}"
        )
        return investment

    async def get_investment(self, investment_id: str) -> Investment | None:
        data = await self.storage.metadata.get(Collections.FOREX_INVESTMENTS, investment_id)
        return Investment.model_validate(data) if data else None

    async def get_owned_investment(self, investment_id: str, user_id: str) -> Investment:
        investment = await self.get_investment(investment_id)
        if investment is None:
            raise NotFoundError("Investment")
        if investment.user_id != user_id:
            raise PermissionDeniedError("Not authorized to access this investment")
        return investment

    async def get_user_investments(
        self,
        user_id: str,
        status: InvestmentStatus | None = None,
    ) -> list[Investment]:
        filters: dict[str, Any] = {"user_id": user_id}
        if status:
            filters["status"] = status.value
        rows = await self.storage.metadata.query(Collections.FOREX_INVESTMENTS, filters, limit=1_000)
        investments = [Investment.model_validate(r) for r in rows]
        return sorted(investments, key=lambda i: i.created_at, reverse=True)

    async def get_user_portfolio(self, user_id: str) -> dict[str, Any]:
        investments = await self.get_user_investments(user_id)
        active = [i for i in investments if i.status == InvestmentStatus.ACTIVE]
        finished = [
            i for i in investments
            if i.status in (InvestmentStatus.COMPLETED, InvestmentStatus.REDEEMED)
        ]

        invested = sum(i.amount for i in active)
        profit = sum(i.profit for i in active)
        return {
            "total_invested": invested,
            "total_value": sum(i.current_value for i in active),
            "total_profit": profit,
            "total_profit_percent": (profit / invested * 100) if invested > 0 else 0.0,
            "active_count": len(active),
            "completed_count": len(finished),
        }

    async def redeem_investment(self, investment_id: str, user_id: str) -> dict[str, Any]:
        investment = await self.get_owned_investment(investment_id, user_id)
        if investment.status not in (InvestmentStatus.ACTIVE, InvestmentStatus.COMPLETED):
            raise InvalidStateError(f"Cannot redeem investment with status: {investment.status.value}")

        redeem_amount = investment.current_value
        await self.storage.metadata.update(Collections.FOREX_INVESTMENTS, investment_id, {
            "status": InvestmentStatus.REDEEMED.value,
            "redeemed_at": utc_now().isoformat(),
        })

        logger.info(f"Investment redeemed: {investment_id} ({redeem_amount})")
        return {
            "investment": await self.get_investment(investment_id),
            "redeem_amount": redeem_amount,
        }

    async def count_investments(self, status: InvestmentStatus | None = None) -> int:
        filters = {"status": status.value} if status else None
        return await self.storage.metadata.count(Collections.FOREX_INVESTMENTS, filters)

    async def _active_pool_size(self) -> float:
        rows = await self.storage.metadata.query(
            Collections.FOREX_INVESTMENTS,
            {"status": InvestmentStatus.ACTIVE.value},
            limit=100_000,
        )
        return sum(r["amount"] for r in rows)
