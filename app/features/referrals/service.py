"""Referral codes and referral rewards"""
import logging
import re
import secrets
from typing import Any, Dict, Optional

import stripe
from fastapi import HTTPException
from postgrest.exceptions import APIError

from app.config import STRIPE_API_VERSION
from app.infra.supabase.repositories import RepositoryFactory
from app.models.referral import Referral, ReferralCodeCreate, ReferralCreate, ReferralUpdate

logger = logging.getLogger(__name__)

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_PREFIX = "FG-"
CODE_RANDOM_LENGTH = 6
CODE_MAX_LENGTH = 32
CODE_ATTEMPTS = 5

REFERRAL_REWARD_CENTS = 50000
UNIQUE_VIOLATION = "23505"


def random_code(length: int = CODE_RANDOM_LENGTH) -> str:
    """FG- followed by characters that are hard to misread"""
    return CODE_PREFIX + "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def sanitize_code(desired: str) -> str:
    """Uppercase, keep A-Z, 0-9 and '-', cap at 32 characters"""
    return re.sub(r"[^A-Z0-9\-]", "", str(desired).upper())[:CODE_MAX_LENGTH]


def is_annual(subscription: Dict[str, Any]) -> bool:
    items = (subscription.get("items") or {}).get("data") or []
    return any(
        ((item.get("price") or {}).get("recurring") or {}).get("interval") == "year"
        for item in items
    )


class ReferralService:
    """Creates tenant referral codes and pays out referral rewards"""

    def __init__(self, repos: RepositoryFactory, stripe_api_key: Optional[str] = None):
        self.repos = repos
        self.stripe_api_key = stripe_api_key

    def _stripe_options(self) -> Dict[str, str]:
        return {"api_key": self.stripe_api_key, "stripe_version": STRIPE_API_VERSION}

    # ============================================================================
    # CODES
    # ============================================================================

    async def create_code(self, supabase_user_id: str, desired_code: Optional[str] = None) -> str:
        """
        Create a referral code for the caller's tenant

        A desired code is sanitized first. If it is empty after sanitizing or
        already taken, random codes are tried instead.

        Raises:
            HTTPException(403): caller has no tenant
            HTTPException(409): code was claimed concurrently
            HTTPException(500): lookup or insert failure
        """
        app_user = await self.repos.users.find_by_auth_user_id(supabase_user_id)
        if not app_user or not app_user.tenant_id:
            logger.warning(f"Failed to resolve tenant for user {supabase_user_id}")
            raise HTTPException(status_code=403, detail="Tenant not found")

        code = sanitize_code(desired_code) if desired_code else ""
        if not code:
            code = random_code()

        for _ in range(CODE_ATTEMPTS):
            try:
                existing = await self.repos.referral_codes.find_by_code(code)
            except APIError as e:
                logger.error(f"Referral code lookup failed: {e.message}")
                raise HTTPException(status_code=500, detail="Lookup failed")
            if not existing:
                break
            code = random_code()

        try:
            await self.repos.referral_codes.create(
                ReferralCodeCreate(tenant_id=app_user.tenant_id, code=code)
            )
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise HTTPException(status_code=409, detail="Code already exists")
            logger.error(f"Referral code insert failed: {e.message}")
            raise HTTPException(status_code=500, detail="Failed to create code")

        logger.info(f"Created referral code {code} for tenant {app_user.tenant_id}")
        return code

    # ============================================================================
    # REFERRALS
    # ============================================================================

    def _checkout_price_id(self, session_id: Optional[str]) -> Optional[str]:
        if not session_id:
            return None
        session = stripe.checkout.Session.retrieve(
            session_id,
            expand=["line_items"],
            **self._stripe_options(),
        ).to_dict()
        line_items = (session.get("line_items") or {}).get("data") or []
        if not line_items:
            return None
        return (line_items[0].get("price") or {}).get("id")

    async def record_checkout_referral(
        self,
        code: str,
        stripe_customer_id: str,
        subscription_id: str,
        session_id: Optional[str] = None,
    ) -> Optional[Referral]:
        """
        Record an unqualified referral for a completed checkout

        Failures are logged and swallowed so they never block the
        subscription sync.
        """
        try:
            existing = await self.repos.referrals.find_for_customer(code, stripe_customer_id)
            if existing:
                return existing

            referral = await self.repos.referrals.create(ReferralCreate(
                code=code,
                referred_stripe_customer_id=stripe_customer_id,
                referred_subscription_id=subscription_id,
                referred_price_id=self._checkout_price_id(session_id),
                qualified=False,
                reward_cents=0,
                reward_applied_cents=0,
            ))
            logger.info(f"Recorded referral {code} for customer {stripe_customer_id}")
            return referral

        except Exception as e:
            logger.warning(f"Referral record failed (non-fatal): {e}")
            return None

    async def _qualify(self, code: str, stripe_customer_id: str, subscription: Dict[str, Any]) -> Referral:
        referral = await self.repos.referrals.find_for_customer(code, stripe_customer_id)
        if not referral:
            items = (subscription.get("items") or {}).get("data") or []
            price_id = (items[0].get("price") or {}).get("id") if items else None
            return await self.repos.referrals.create(ReferralCreate(
                code=code,
                referred_stripe_customer_id=stripe_customer_id,
                referred_subscription_id=subscription.get("id"),
                referred_price_id=price_id,
                qualified=True,
                reward_cents=REFERRAL_REWARD_CENTS,
                reward_applied_cents=0,
            ))

        if not referral.qualified:
            updated = await self.repos.referrals.update(
                referral.id,
                ReferralUpdate(qualified=True, reward_cents=REFERRAL_REWARD_CENTS),
            )
            return updated or referral
        return referral

    async def _referrer_customer_id(self, code: str) -> Optional[str]:
        referral_code = await self.repos.referral_codes.find_by_code(code)
        if not referral_code:
            return None
        tenant = await self.repos.tenants.find_by_id(referral_code.tenant_id)
        return tenant.stripe_customer_id if tenant else None

    async def reward_renewal(
        self,
        code: str,
        stripe_customer_id: str,
        subscription: Dict[str, Any],
    ) -> bool:
        """
        Qualify an annual referral and credit the referrer once

        The referrer's Stripe balance is credited REFERRAL_REWARD_CENTS the
        first time; reward_applied_cents guards against paying twice.
        Failures are logged and swallowed.

        Returns:
            True if a credit was applied by this call
        """
        if not is_annual(subscription):
            logger.info(f"Referral {code}: subscription {subscription.get('id')} is not annual, no reward")
            return False

        try:
            referral = await self._qualify(code, stripe_customer_id, subscription)
            if referral.reward_applied_cents > 0:
                logger.info(f"Referral {code} reward already applied for {stripe_customer_id}")
                return False

            referrer_customer_id = await self._referrer_customer_id(code)
            if not referrer_customer_id:
                logger.warning(f"Referral {code}: referrer has no Stripe customer, reward pending")
                return False

            stripe.Customer.create_balance_transaction(
                referrer_customer_id,
                amount=-REFERRAL_REWARD_CENTS,
                currency="usd",
                description=f"Referral reward for {stripe_customer_id}",
                **self._stripe_options(),
            )
            await self.repos.referrals.update(
                referral.id,
                ReferralUpdate(reward_applied_cents=REFERRAL_REWARD_CENTS),
            )
            logger.info(f"Applied referral credit to {referrer_customer_id} for {stripe_customer_id}")
            return True

        except Exception as e:
            logger.warning(f"Referral reward processing failed (non-fatal): {e}")
            return False
