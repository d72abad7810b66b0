"""Tests for BillingService against a patched Stripe SDK"""
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe
from fastapi import HTTPException

from app.auth import AuthenticatedUser
from app.config import STRIPE_API_VERSION
from app.features.billing.price_resolution import PriceResolutionChain, resolve_explicit
from app.features.billing.schemas import CreateCheckoutRequest, CreateInvoiceRequest, CustomerInfo
from app.features.billing.service import BillingService
from app.models.subscription import Subscription
from app.models.user import AppUser


@pytest.fixture
def service(repos):
    return BillingService(repos, PriceResolutionChain([resolve_explicit]), "sk_test_123")


def invoice_request(**overrides) -> CreateInvoiceRequest:
    data = {
        "priceId": "price_pro_y",
        "planName": "Pro",
        "billingCycle": "annual",
        "customerInfo": {"email": "chief@station9.org", "name": "Chief Ruiz"},
    }
    data.update(overrides)
    return CreateInvoiceRequest.model_validate(data)


class TestCheckout:
    async def test_creates_session_for_existing_customer(self, service, auth_user):
        existing = SimpleNamespace(data=[SimpleNamespace(id="cus_1", email=auth_user.email)])
        session = SimpleNamespace(id="cs_1", url="https://checkout.stripe.test/cs_1")

        with patch("stripe.Customer.list", return_value=existing), \
                patch("stripe.Customer.create") as create_customer, \
                patch("stripe.checkout.Session.create", return_value=session) as create_session:
            result = await service.checkout(
                auth_user,
                CreateCheckoutRequest(priceId="price_pro_m", metadata={"referral_code": "FG-ABC234"}),
                "https://firegauge.app",
            )

        assert result.url == "https://checkout.stripe.test/cs_1"
        assert result.session_id == "cs_1"
        create_customer.assert_not_called()

        kwargs = create_session.call_args.kwargs
        assert kwargs["customer"] == "cus_1"
        assert kwargs["line_items"] == [{"price": "price_pro_m", "quantity": 1}]
        assert kwargs["success_url"] == "https://firegauge.app/billing?success=true"
        assert kwargs["cancel_url"] == "https://firegauge.app/billing?canceled=true"
        assert kwargs["metadata"]["supabase_user_id"] == auth_user.id
        assert kwargs["metadata"]["referral_code"] == "FG-ABC234"
        assert kwargs["subscription_data"] == {"metadata": kwargs["metadata"]}
        assert kwargs["api_key"] == "sk_test_123"
        assert kwargs["stripe_version"] == STRIPE_API_VERSION

    async def test_requires_user_email(self, service):
        user = AuthenticatedUser(id="auth-user-2", email=None)

        with pytest.raises(HTTPException) as exc_info:
            await service.checkout(user, CreateCheckoutRequest(priceId="price_x"), "https://firegauge.app")

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "User email is not available"

    async def test_missing_stripe_key(self, repos, auth_user):
        service = BillingService(repos, PriceResolutionChain([resolve_explicit]), None)

        with pytest.raises(HTTPException) as exc_info:
            await service.checkout(auth_user, CreateCheckoutRequest(priceId="price_x"), "https://firegauge.app")

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Stripe configuration missing"


class TestCreateInvoice:
    async def test_creates_finalizes_and_sends(self, service):
        sent = SimpleNamespace(
            id="in_1",
            total=99900,
            currency="usd",
            status="open",
            hosted_invoice_url="https://invoice.stripe.test/in_1",
            invoice_pdf="https://invoice.stripe.test/in_1.pdf",
        )

        with patch("stripe.Customer.list", return_value=SimpleNamespace(data=[])), \
                patch("stripe.Customer.create",
                      return_value=SimpleNamespace(id="cus_new", email="chief@station9.org")) as create_customer, \
                patch("stripe.Price.retrieve",
                      return_value=SimpleNamespace(id="price_pro_y", unit_amount=99900, currency="usd")), \
                patch("stripe.Invoice.create", return_value=SimpleNamespace(id="in_1")) as create_invoice, \
                patch("stripe.InvoiceItem.create") as create_item, \
                patch("stripe.PromotionCode.list",
                      return_value=SimpleNamespace(data=[SimpleNamespace(id="promo_1")])), \
                patch("stripe.Invoice.modify") as modify_invoice, \
                patch("stripe.Invoice.finalize_invoice",
                      return_value=SimpleNamespace(id="in_1", total=99900, status="open")), \
                patch("stripe.Invoice.send_invoice", return_value=sent):
            result = await service.create_invoice(invoice_request(promoCode="SPRING"))

        assert result.success is True
        assert result.message == "Invoice created and sent successfully"
        assert result.invoice.hosted_invoice_url == "https://invoice.stripe.test/in_1"
        assert result.customer.id == "cus_new"

        customer_kwargs = create_customer.call_args.kwargs
        assert customer_kwargs["name"] == "Chief Ruiz"
        assert customer_kwargs["metadata"]["source"] == "firegauge_marketing"
        assert customer_kwargs["metadata"]["plan_requested"] == "Pro"

        invoice_kwargs = create_invoice.call_args.kwargs
        assert invoice_kwargs["collection_method"] == "send_invoice"
        assert invoice_kwargs["days_until_due"] == 30
        assert invoice_kwargs["auto_advance"] is False
        assert invoice_kwargs["metadata"]["quote_request"] == "true"
        assert {"name": "Billing Cycle", "value": "Annual"} in invoice_kwargs["custom_fields"]

        assert create_item.call_args.kwargs["price"] == "price_pro_y"
        assert create_item.call_args.kwargs["invoice"] == "in_1"
        modify_invoice.assert_called_once()
        assert modify_invoice.call_args.kwargs["discounts"] == [{"promotion_code": "promo_1"}]

    async def test_customer_email_required(self, service):
        with pytest.raises(HTTPException) as exc_info:
            await service.create_invoice(invoice_request(customerInfo={"name": "No Email"}))

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Customer email is required"

    async def test_invalid_price(self, service):
        existing = SimpleNamespace(data=[SimpleNamespace(id="cus_1", email="chief@station9.org")])

        with patch("stripe.Customer.list", return_value=existing), \
                patch("stripe.Price.retrieve", side_effect=stripe.InvalidRequestError("No such price", "price")):
            with pytest.raises(HTTPException) as exc_info:
                await service.create_invoice(invoice_request())

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Invalid price ID"

    async def test_invoice_failure_carries_details(self, service):
        existing = SimpleNamespace(data=[SimpleNamespace(id="cus_1", email="chief@station9.org")])

        with patch("stripe.Customer.list", return_value=existing), \
                patch("stripe.Price.retrieve",
                      return_value=SimpleNamespace(id="price_pro_y", unit_amount=1, currency="usd")), \
                patch("stripe.Invoice.create", side_effect=stripe.APIConnectionError("stripe unreachable")):
            with pytest.raises(HTTPException) as exc_info:
                await service.create_invoice(invoice_request())

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail["error"] == "Failed to create invoice"
        assert "stripe unreachable" in exc_info.value.detail["details"]

    async def test_unknown_promo_code_leaves_invoice_alone(self, service):
        with patch("stripe.PromotionCode.list", return_value=SimpleNamespace(data=[])), \
                patch("stripe.Coupon.retrieve", side_effect=stripe.InvalidRequestError("No such coupon", "id")), \
                patch("stripe.Invoice.modify") as modify_invoice:
            applied = service.apply_promo_code("in_1", "BOGUS")

        assert applied is False
        modify_invoice.assert_not_called()


class TestCustomerPortal:
    async def test_uses_customer_from_metadata(self, service, auth_user):
        auth_user.user_metadata = {"stripe_customer_id": "cus_meta"}
        customer = stripe.Customer.construct_from({"id": "cus_meta", "object": "customer"}, "sk_test_123")

        with patch("stripe.Customer.retrieve", return_value=customer), \
                patch("stripe.Customer.list") as list_customers, \
                patch("stripe.billing_portal.Session.create",
                      return_value=SimpleNamespace(url="https://billing.stripe.test/p/1")) as create_portal:
            url = await service.customer_portal(auth_user, "https://firegauge.app")

        assert url == "https://billing.stripe.test/p/1"
        list_customers.assert_not_called()
        assert create_portal.call_args.kwargs["customer"] == "cus_meta"
        assert create_portal.call_args.kwargs["return_url"] == "https://firegauge.app/billing"

    async def test_deleted_customer_in_metadata(self, service, auth_user):
        auth_user.user_metadata = {"stripe_customer_id": "cus_gone"}
        customer = stripe.Customer.construct_from(
            {"id": "cus_gone", "object": "customer", "deleted": True}, "sk_test_123"
        )

        with patch("stripe.Customer.retrieve", return_value=customer):
            with pytest.raises(HTTPException) as exc_info:
                await service.customer_portal(auth_user, "https://firegauge.app")

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Associated Stripe customer has been deleted."

    async def test_no_customer_for_email(self, service, auth_user):
        with patch("stripe.Customer.list", return_value=SimpleNamespace(data=[])):
            with pytest.raises(HTTPException) as exc_info:
                await service.customer_portal(auth_user, "https://firegauge.app")

        assert exc_info.value.status_code == 404


class TestCheckSubscription:
    async def test_user_without_tenant(self, service, repos, auth_user):
        repos.users.find_by_auth_user_id.return_value = None

        with pytest.raises(HTTPException) as exc_info:
            await service.check_subscription(auth_user)

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == {"subscribed": False, "error": "User not associated with a tenant."}

    async def test_no_active_subscription(self, service, repos, auth_user):
        repos.users.find_by_auth_user_id.return_value = AppUser(id=1, tenant_id=5, username="chief")
        repos.subscriptions.find_active_for_tenant.return_value = None

        result = await service.check_subscription(auth_user)

        assert result.subscribed is False
        repos.subscriptions.find_active_for_tenant.assert_awaited_once_with(5)

    async def test_active_subscription(self, service, repos, auth_user):
        repos.users.find_by_auth_user_id.return_value = AppUser(id=1, tenant_id=5, username="chief")
        repos.subscriptions.find_active_for_tenant.return_value = Subscription(
            id="sub-row-1",
            tenant_id=5,
            stripe_subscription_id="sub_1",
            stripe_customer_id="cus_1",
            stripe_price_id="price_pro_m",
            status="trialing",
            current_period_end=datetime(2026, 11, 1, tzinfo=timezone.utc),
        )

        result = await service.check_subscription(auth_user)

        assert result.subscribed is True
        assert result.status == "trialing"
        assert result.plan_id == "price_pro_m"
        assert result.current_period_end == "2026-11-01T00:00:00+00:00"

    async def test_database_failure(self, service, repos, auth_user):
        repos.users.find_by_auth_user_id.side_effect = RuntimeError("connection reset")

        with pytest.raises(HTTPException) as exc_info:
            await service.check_subscription(auth_user)

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == {"error": "connection reset", "subscribed": False}
