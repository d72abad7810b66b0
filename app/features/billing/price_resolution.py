"""
Stripe price resolution.

A request names either an explicit price id or a plan + billing cycle. The
resolvers below are tried in order and the first non-empty result wins:

1. the explicit price id sent by the client
2. the stripe_price_map table, scoped to the current Stripe mode
3. the STRIPE_PRICE_MAP_<MODE> / STRIPE_PRICE_MAP environment JSON

A resolver that fails is logged and skipped. Only when every resolver comes
up empty does the caller get a configuration error.
"""
import json
import logging
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from fastapi import HTTPException

from app.config import get_stripe_mode
from app.infra.supabase.repositories.price_map import PriceMapRepository

logger = logging.getLogger(__name__)


@dataclass
class PriceQuery:
    """What the client asked for"""
    price_id: Optional[str] = None
    plan_id: Optional[str] = None
    billing_cycle: str = "monthly"
    mode: str = "test"


PriceResolver = Callable[[PriceQuery], Awaitable[Optional[str]]]


async def resolve_explicit(query: PriceQuery) -> Optional[str]:
    """Use the price id from the request as-is"""
    if query.price_id and query.price_id.strip():
        return query.price_id.strip()
    return None


def database_resolver(price_map_repo: PriceMapRepository) -> PriceResolver:
    """Build a resolver that reads the stripe_price_map table"""

    async def resolve_from_database(query: PriceQuery) -> Optional[str]:
        if not query.plan_id:
            return None
        try:
            return await price_map_repo.find_price_id(query.plan_id, query.billing_cycle, query.mode)
        except Exception as e:
            logger.warning(f"Price map lookup failed for {query.plan_id}/{query.billing_cycle}: {e}")
            return None

    return resolve_from_database


def _load_env_price_map(mode: str) -> dict:
    raw = os.getenv(f"STRIPE_PRICE_MAP_{mode.upper()}") or os.getenv("STRIPE_PRICE_MAP")
    if not raw:
        return {}
    try:
        price_map = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"STRIPE_PRICE_MAP for mode {mode} is not valid JSON: {e}")
        return {}
    if not isinstance(price_map, dict):
        logger.warning(f"STRIPE_PRICE_MAP for mode {mode} must be a JSON object")
        return {}
    return price_map


async def resolve_from_env(query: PriceQuery) -> Optional[str]:
    """Look the plan up in the environment JSON price map"""
    if not query.plan_id:
        return None
    plan_prices = _load_env_price_map(query.mode).get(query.plan_id)
    if not isinstance(plan_prices, dict):
        return None
    price_id = plan_prices.get(query.billing_cycle)
    return price_id if isinstance(price_id, str) and price_id else None


class PriceResolutionChain:
    """Ordered list of resolvers; first hit wins"""

    def __init__(self, resolvers: List[PriceResolver]):
        self.resolvers = resolvers

    async def resolve(self, query: PriceQuery) -> Optional[str]:
        for resolver in self.resolvers:
            price_id = await resolver(query)
            if price_id:
                logger.info(
                    f"Resolved price {price_id} for plan={query.plan_id} "
                    f"cycle={query.billing_cycle} via {resolver.__name__}"
                )
                return price_id
        return None

    async def resolve_or_400(self, query: PriceQuery) -> str:
        """
        Resolve or raise a client-visible configuration error

        Raises:
            HTTPException(400): nothing in the chain produced a price
        """
        price_id = await self.resolve(query)
        if price_id:
            return price_id

        logger.error(
            f"No price resolved for plan={query.plan_id} cycle={query.billing_cycle} mode={query.mode}"
        )
        if not query.plan_id:
            raise HTTPException(status_code=400, detail="priceId or planId is required")
        raise HTTPException(
            status_code=400,
            detail=f"No Stripe price configured for plan '{query.plan_id}' ({query.billing_cycle})"
        )


def default_price_chain(price_map_repo: PriceMapRepository) -> PriceResolutionChain:
    return PriceResolutionChain([
        resolve_explicit,
        database_resolver(price_map_repo),
        resolve_from_env,
    ])


def build_query(
    price_id: Optional[str],
    plan_id: Optional[str],
    billing_cycle: Optional[str],
) -> PriceQuery:
    return PriceQuery(
        price_id=price_id,
        plan_id=plan_id,
        billing_cycle=billing_cycle or "monthly",
        mode=get_stripe_mode(),
    )
