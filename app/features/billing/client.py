"""
Billing client

Builds request bodies for the billing functions and calls them over HTTP.
Every failure surfaces as BillingError carrying the server's error string and
HTTP status. There are no retries; the caller decides what to show.
"""
import logging
from typing import Any, Dict, Optional, Union

import httpx

from app.config import FUNCTIONS_URL, SUPABASE_ANON_KEY
from app.features.billing.domain import BillingCycle, BillingMethod
from app.features.billing.plans import BillingSelection
from app.features.billing.schemas import (
    CheckSubscriptionResponse,
    CreateCheckoutResponse,
    CreateInvoiceResponse,
    CustomerInfo,
)

logger = logging.getLogger(__name__)

TRACKING_SOURCE = "marketing_site"


class BillingError(Exception):
    """A billing function call failed or returned an unusable response"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _value(option: Union[str, BillingMethod, BillingCycle]) -> str:
    return option.value if isinstance(option, (BillingMethod, BillingCycle)) else str(option)


class BillingClient:
    """Async client for the checkout, invoice and portal functions"""

    def __init__(
        self,
        http: httpx.AsyncClient,
        functions_url: str = FUNCTIONS_URL,
        anon_key: Optional[str] = SUPABASE_ANON_KEY,
        timeout: float = 30.0,
    ):
        self.http = http
        self.functions_url = functions_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout

    async def _invoke(
        self,
        function_name: str,
        body: Optional[Dict[str, Any]] = None,
        access_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """POST a JSON body to a billing function and return the decoded response"""
        headers = {"Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        if self.anon_key:
            headers["apikey"] = self.anon_key

        url = f"{self.functions_url}/{function_name}"
        try:
            response = await self.http.post(url, json=body or {}, headers=headers, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.error(f"Billing function {function_name} unreachable: {e}")
            raise BillingError(f"Failed to reach {function_name}: {str(e)}")

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:
            message = data.get("error") if isinstance(data, dict) else None
            logger.warning(f"Billing function {function_name} failed ({response.status_code}): {message}")
            raise BillingError(
                message or f"{function_name} failed with status {response.status_code}",
                response.status_code,
            )

        if not isinstance(data, dict):
            raise BillingError(f"Unexpected response from {function_name}", response.status_code)
        return data

    async def create_checkout_session(
        self,
        price_id: str,
        plan_name: str,
        billing_method: Union[str, BillingMethod],
        billing_cycle: Union[str, BillingCycle],
        access_token: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
        referral_code: Optional[str] = None,
    ) -> CreateCheckoutResponse:
        """
        Start a card checkout and return the hosted checkout URL

        Raises:
            BillingError: missing parameters, function error, or no URL returned
        """
        if not price_id or not plan_name or not billing_method or not billing_cycle:
            raise BillingError("priceId, planName, billingMethod and billingCycle are required")

        tracking = {
            **(metadata or {}),
            "plan_name": plan_name,
            "billing_method": _value(billing_method),
            "billing_cycle": _value(billing_cycle),
            "source": TRACKING_SOURCE,
        }
        if referral_code:
            tracking["referral_code"] = referral_code

        data = await self._invoke(
            "create-checkout",
            {"priceId": price_id, "billingCycle": _value(billing_cycle), "metadata": tracking},
            access_token,
        )
        if not data.get("url"):
            raise BillingError(data.get("error") or "No checkout URL returned")

        logger.info(f"Checkout session created for plan {plan_name}")
        return CreateCheckoutResponse.model_validate(data)

    async def create_invoice(
        self,
        price_id: str,
        plan_name: str,
        billing_cycle: Union[str, BillingCycle],
        customer_info: Optional[CustomerInfo],
        metadata: Optional[Dict[str, str]] = None,
        promo_code: Optional[str] = None,
    ) -> CreateInvoiceResponse:
        """
        Request an emailed invoice instead of a card checkout

        Raises:
            BillingError: missing parameters, function error, or success flag absent
        """
        if not price_id or not plan_name or not billing_cycle or not customer_info:
            raise BillingError("priceId, planName, billingCycle and customerInfo are required")
        if not customer_info.email:
            raise BillingError("Customer email is required")

        body: Dict[str, Any] = {
            "priceId": price_id,
            "planName": plan_name,
            "billingCycle": _value(billing_cycle),
            "customerInfo": customer_info.model_dump(exclude_none=True),
            "metadata": {
                **(metadata or {}),
                "plan_name": plan_name,
                "billing_method": BillingMethod.INVOICE.value,
                "billing_cycle": _value(billing_cycle),
                "source": TRACKING_SOURCE,
            },
        }
        if promo_code:
            body["promoCode"] = promo_code

        data = await self._invoke("create-invoice", body)
        if data.get("success") is not True:
            raise BillingError(data.get("error") or "Invoice creation failed")

        logger.info(f"Invoice created for plan {plan_name}")
        return CreateInvoiceResponse.model_validate(data)

    async def process_billing(
        self,
        selection: BillingSelection,
        plan_name: str,
        customer_info: Optional[CustomerInfo] = None,
        access_token: Optional[str] = None,
        referral_code: Optional[str] = None,
        promo_code: Optional[str] = None,
    ) -> Union[CreateCheckoutResponse, CreateInvoiceResponse]:
        """
        Dispatch a selection to checkout or invoice

        Raises:
            BillingError: invoice without customer info, or unsupported method
        """
        try:
            method = BillingMethod(selection.method)
        except ValueError:
            raise BillingError(f"Unsupported billing method: {selection.method}")

        if method == BillingMethod.SUBSCRIPTION:
            return await self.create_checkout_session(
                selection.price_id,
                plan_name,
                method,
                selection.cycle,
                access_token=access_token,
                metadata=selection.metadata,
                referral_code=referral_code,
            )

        if not customer_info:
            raise BillingError("Customer information is required for invoice billing")
        return await self.create_invoice(
            selection.price_id,
            plan_name,
            selection.cycle,
            customer_info,
            metadata=selection.metadata,
            promo_code=promo_code,
        )

    async def open_customer_portal(self, access_token: str) -> str:
        """URL of the caller's Stripe billing portal"""
        data = await self._invoke("customer-portal", access_token=access_token)
        if not data.get("url"):
            raise BillingError(data.get("error") or "No portal URL returned")
        return data["url"]

    async def check_subscription(self, access_token: str) -> CheckSubscriptionResponse:
        data = await self._invoke("check-subscription", access_token=access_token)
        return CheckSubscriptionResponse.model_validate(data)
