"""
Tests for AI quant strategies and the order lifecycle.
"""

from datetime import timedelta

import pytest

from one_engine.api.responses import ErrorCodes
from one_engine.services import InvalidStateError, OrderStatus, PermissionDeniedError
from one_engine.services.quant import DEFAULT_STRATEGIES
from one_engine.storage import Collections

STABLE, TREND, LEGACY = (s.id for s in DEFAULT_STRATEGIES)


def place(client, auth_header, amount=1_000, strategy_id=STABLE, user_id="user_active"):
    return client.post(
        "/api/v1/ai-quant/orders",
        json={"strategyId": strategy_id, "amount": amount},
        headers=auth_header(user_id),
    )


# =============================================================================
# Strategies
# =============================================================================


class TestStrategies:
    def test_public_listing(self, client):
        data = client.get("/api/v1/ai-quant/strategies").json()["data"]

        assert {s["id"] for s in data["strategies"]} == {STABLE, TREND}
        assert "subscribed_strategy_ids" not in data

    def test_signed_in_listing_marks_subscriptions(self, client, auth_header):
        place(client, auth_header)
        data = client.get("/api/v1/ai-quant/strategies", headers=auth_header()).json()["data"]

        assert data["subscribed_strategy_ids"] == [STABLE]

    def test_bad_token_falls_back_to_anonymous(self, client):
        response = client.get("/api/v1/ai-quant/strategies", headers={"Authorization": "Bearer junk"})

        assert response.status_code == 200
        assert "subscribed_strategy_ids" not in response.json()["data"]

    def test_risk_filter(self, client):
        data = client.get("/api/v1/ai-quant/strategies?riskLevel=low").json()["data"]
        assert [s["id"] for s in data["strategies"]] == [STABLE]


# =============================================================================
# Orders
# =============================================================================


class TestCreateOrder:
    def test_create(self, client, auth_header):
        response = place(client, auth_header)
        order = response.json()["data"]["order"]

        assert response.status_code == 201
        assert order["status"] == "active"
        assert order["shares"] == 1_000
        assert order["lock_period_days"] == 30

    @pytest.mark.parametrize("amount", [50, 600_000])
    def test_outside_investment_bounds(self, client, auth_header, amount):
        response = place(client, auth_header, amount=amount)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCodes.VALIDATION_ERROR

    def test_inactive_strategy(self, client, auth_header):
        assert place(client, auth_header, strategy_id=LEGACY).status_code == 400

    def test_unknown_strategy(self, client, auth_header):
        response = place(client, auth_header, strategy_id="00000000-0000-4000-8000-000000000000")
        assert response.status_code == 404

    def test_strategy_id_must_be_uuid(self, client, auth_header):
        response = place(client, auth_header, strategy_id="stable")
        assert response.json()["error"]["details"][0]["field"] == "strategyId"

    def test_listing_is_per_user(self, client, auth_header):
        place(client, auth_header)
        place(client, auth_header, user_id="user_other")

        orders = client.get("/api/v1/ai-quant/orders", headers=auth_header()).json()["data"]["orders"]
        assert [o["user_id"] for o in orders] == ["user_active"]


class TestOrderLifecycle:
    def test_pause_resume_redeem(self, client, auth_header):
        order_id = place(client, auth_header).json()["data"]["order"]["id"]
        base = f"/api/v1/ai-quant/orders/{order_id}"

        paused = client.post(f"{base}/pause", headers=auth_header()).json()["data"]["order"]
        assert (paused["status"], paused["pause_count"]) == ("paused", 1)
        assert client.post(f"{base}/pause", headers=auth_header()).status_code == 400

        resumed = client.post(f"{base}/resume", headers=auth_header()).json()["data"]["order"]
        assert resumed["status"] == "active"
        assert client.post(f"{base}/resume", headers=auth_header()).status_code == 400

        redemption = client.post(f"{base}/redeem", headers=auth_header()).json()["data"]["redemption"]
        assert 0 < redemption["penalty_rate"] <= 0.1
        assert redemption["final_amount"] < 1_000

        detail = client.get(base, headers=auth_header()).json()["data"]
        assert detail["order"]["status"] == "pending_redemption"
        assert detail["strategy"]["id"] == STABLE

    def test_other_user_forbidden(self, client, auth_header):
        order_id = place(client, auth_header).json()["data"]["order"]["id"]

        response = client.post(f"/api/v1/ai-quant/orders/{order_id}/pause", headers=auth_header("user_other"))
        assert response.status_code == 403

    def test_missing_order(self, client, auth_header):
        response = client.get("/api/v1/ai-quant/orders/ord_missing", headers=auth_header())

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Order not found"


# =============================================================================
# Service rules
# =============================================================================


class TestQuantService:
    @pytest.mark.asyncio
    async def test_pause_days_accumulate(self, seeded):
        quant = seeded.quant
        await quant.seed_strategies()
        order = await quant.create_order("user_active", STABLE, 1_000)

        await quant.pause_order(order.id, "user_active")
        started = (await quant.get_order(order.id)).current_pause_start
        await seeded.storage.metadata.update(
            Collections.AI_ORDERS, order.id, {"current_pause_start": (started - timedelta(days=3, hours=-1)).isoformat()}
        )

        resumed = await quant.resume_order(order.id, "user_active")
        assert resumed.total_pause_days == 3
        assert resumed.current_pause_start is None

    @pytest.mark.asyncio
    async def test_matured_order_has_no_penalty_but_pays_fee(self, seeded):
        quant = seeded.quant
        await quant.seed_strategies()
        order = await quant.create_order("user_active", STABLE, 1_000)

        past = order.start_date - timedelta(days=40)
        await seeded.storage.metadata.update(Collections.AI_ORDERS, order.id, {
            "start_date": past.isoformat(),
            "lock_end_date": (past + timedelta(days=30)).isoformat(),
        })
        await seeded.storage.metadata.update(Collections.AI_STRATEGIES, STABLE, {"current_nav": 1.2})

        redemption = await quant.request_redemption(order.id, "user_active")

        assert redemption["penalty_rate"] == 0
        assert redemption["completion_rate"] == 1
        assert redemption["amount"] == pytest.approx(1_200)
        assert redemption["performance_fee"] == pytest.approx(20)
        assert redemption["final_amount"] == pytest.approx(1_180)

    @pytest.mark.asyncio
    async def test_redeemed_order_cannot_be_redeemed(self, seeded):
        quant = seeded.quant
        await quant.seed_strategies()
        order = await quant.create_order("user_active", STABLE, 1_000)
        await seeded.storage.metadata.update(
            Collections.AI_ORDERS, order.id, {"status": OrderStatus.REDEEMED.value}
        )

        with pytest.raises(InvalidStateError):
            await quant.request_redemption(order.id, "user_active")

    @pytest.mark.asyncio
    async def test_ownership(self, seeded):
        quant = seeded.quant
        await quant.seed_strategies()
        order = await quant.create_order("user_active", STABLE, 1_000)

        with pytest.raises(PermissionDeniedError):
            await quant.get_owned_order(order.id, "user_other")
