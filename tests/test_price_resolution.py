"""Tests for Stripe price resolution"""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from app.features.billing.price_resolution import (
    PriceQuery,
    build_query,
    default_price_chain,
    resolve_from_env,
)


@pytest.fixture
def price_map_repo():
    repo = MagicMock()
    repo.find_price_id = AsyncMock(return_value=None)
    return repo


async def test_explicit_price_wins(price_map_repo):
    chain = default_price_chain(price_map_repo)

    price_id = await chain.resolve(PriceQuery(price_id=" price_explicit ", plan_id="pro"))

    assert price_id == "price_explicit"
    price_map_repo.find_price_id.assert_not_awaited()


async def test_database_before_environment(price_map_repo, monkeypatch):
    monkeypatch.setenv("STRIPE_PRICE_MAP_TEST", json.dumps({"pro": {"monthly": "price_env"}}))
    price_map_repo.find_price_id.return_value = "price_db"
    chain = default_price_chain(price_map_repo)

    price_id = await chain.resolve(PriceQuery(plan_id="pro", billing_cycle="monthly", mode="test"))

    assert price_id == "price_db"
    price_map_repo.find_price_id.assert_awaited_once_with("pro", "monthly", "test")


async def test_database_failure_falls_through_to_environment(price_map_repo, monkeypatch):
    monkeypatch.setenv("STRIPE_PRICE_MAP_TEST", json.dumps({"pro": {"annual": "price_env_y"}}))
    price_map_repo.find_price_id.side_effect = RuntimeError("relation does not exist")
    chain = default_price_chain(price_map_repo)

    price_id = await chain.resolve(PriceQuery(plan_id="pro", billing_cycle="annual", mode="test"))

    assert price_id == "price_env_y"


async def test_environment_map_is_scoped_by_mode(monkeypatch):
    monkeypatch.setenv("STRIPE_PRICE_MAP_LIVE", json.dumps({"pro": {"monthly": "price_live"}}))
    monkeypatch.setenv("STRIPE_PRICE_MAP", json.dumps({"pro": {"monthly": "price_default"}}))

    assert await resolve_from_env(PriceQuery(plan_id="pro", mode="live")) == "price_live"
    assert await resolve_from_env(PriceQuery(plan_id="pro", mode="test")) == "price_default"


async def test_invalid_environment_json_is_ignored(monkeypatch):
    monkeypatch.setenv("STRIPE_PRICE_MAP_TEST", "{not json")

    assert await resolve_from_env(PriceQuery(plan_id="pro", mode="test")) is None


async def test_nothing_resolved_names_the_plan(price_map_repo):
    chain = default_price_chain(price_map_repo)

    with pytest.raises(HTTPException) as exc_info:
        await chain.resolve_or_400(PriceQuery(plan_id="pro", billing_cycle="annual"))

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "No Stripe price configured for plan 'pro' (annual)"


async def test_no_price_and_no_plan(price_map_repo):
    chain = default_price_chain(price_map_repo)

    with pytest.raises(HTTPException) as exc_info:
        await chain.resolve_or_400(PriceQuery())

    assert exc_info.value.detail == "priceId or planId is required"


def test_build_query_uses_current_mode(monkeypatch):
    monkeypatch.setenv("STRIPE_MODE", "LIVE")

    query = build_query(None, "pro", None)

    assert query.mode == "live"
    assert query.billing_cycle == "monthly"
