"""Request and response schemas for Billing feature"""
from typing import Dict, Optional

from pydantic import BaseModel, Field, ConfigDict

from app.features.billing.domain import BillingCycle


class Address(BaseModel):
    """Billing address"""
    line1: str
    line2: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str = "US"


class CustomerInfo(BaseModel):
    """Contact details for the invoice flow"""
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Address] = None


class CreateCheckoutRequest(BaseModel):
    """Request model for create-checkout"""
    model_config = ConfigDict(populate_by_name=True)

    price_id: Optional[str] = Field(None, alias="priceId")
    plan_id: Optional[str] = Field(None, alias="planId")
    billing_cycle: BillingCycle = Field(BillingCycle.MONTHLY, alias="billingCycle")
    metadata: Dict[str, str] = Field(default_factory=dict)


class CreateCheckoutResponse(BaseModel):
    """Response model for create-checkout"""
    model_config = ConfigDict(populate_by_name=True)

    url: str
    session_id: Optional[str] = Field(None, alias="sessionId")


class CreateInvoiceRequest(BaseModel):
    """Request model for create-invoice"""
    model_config = ConfigDict(populate_by_name=True)

    price_id: Optional[str] = Field(None, alias="priceId")
    plan_id: Optional[str] = Field(None, alias="planId")
    plan_name: Optional[str] = Field(None, alias="planName")
    billing_cycle: BillingCycle = Field(BillingCycle.MONTHLY, alias="billingCycle")
    customer_info: Optional[CustomerInfo] = Field(None, alias="customerInfo")
    metadata: Dict[str, str] = Field(default_factory=dict)
    promo_code: Optional[str] = Field(None, alias="promoCode")


class InvoiceSummary(BaseModel):
    """Invoice fields returned to the client"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    total: Optional[int] = None
    currency: Optional[str] = None
    status: Optional[str] = None
    hosted_invoice_url: Optional[str] = Field(None, alias="hostedInvoiceUrl")
    invoice_pdf: Optional[str] = Field(None, alias="invoicePdf")


class CustomerSummary(BaseModel):
    id: str
    email: Optional[str] = None


class CreateInvoiceResponse(BaseModel):
    """Response model for create-invoice"""
    success: bool
    invoice: InvoiceSummary
    customer: CustomerSummary
    message: str


class CustomerPortalResponse(BaseModel):
    """Response model for customer-portal"""
    url: str


class CheckSubscriptionResponse(BaseModel):
    """Response model for check-subscription"""
    subscribed: bool
    status: Optional[str] = None
    plan_id: Optional[str] = None
    current_period_end: Optional[str] = None
    subscription_tier: Optional[str] = None


class BillingConfigResponse(BaseModel):
    """Public Stripe configuration for the browser"""
    model_config = ConfigDict(populate_by_name=True)

    mode: str
    publishable_key: Optional[str] = Field(None, alias="publishableKey")
