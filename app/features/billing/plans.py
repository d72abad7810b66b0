"""
FireGauge plan catalogue.

Static configuration rendered by the pricing pages. Stripe price ids are read
from PRICE_<PLAN>_<CYCLE> environment variables when the catalogue is built.
"""
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from app.features.billing.domain import BillingCycle, BillingMethod


def _env_price(name: str) -> str:
    return (os.getenv(name) or "").strip()


@dataclass
class StripePricing:
    monthly: str = ""
    annual: str = ""
    invoice: str = ""


@dataclass
class Plan:
    id: str
    name: str
    display_price: str
    description: str
    user_count: str
    asset_count: str
    core_modules: str
    features: List[str]
    cta_text: str
    pricing: StripePricing
    supports_invoice: bool
    recommended: bool = False
    is_enterprise: bool = False
    annual_savings: Optional[str] = None


@dataclass
class BillingSelection:
    """A customer's plan/method/cycle choice for one checkout attempt"""
    plan_id: str
    method: BillingMethod
    cycle: BillingCycle
    price_id: str
    metadata: Dict[str, str] = field(default_factory=dict)


def build_plans() -> Dict[str, Plan]:
    return {
        "pilot": Plan(
            id="pilot",
            name="Pilot 90",
            display_price="Free",
            description=(
                "Run one full test season at no cost. Auto-reminds you 75 days in. "
                "Includes billing setup for seamless transition."
            ),
            user_count="1 Admin + 1 Inspector",
            asset_count="Up to 100 assets",
            core_modules="Hose Testing (NFPA-1962)",
            features=[
                "Offline PWA / Mobile App",
                "PDF export (1-yr archive)",
                "Guided Pass/Fail flow",
                "Billing setup included",
                "Cancel anytime",
                "Automatic trial reminders",
            ],
            cta_text="Start Free Trial",
            pricing=StripePricing(
                monthly=_env_price("PRICE_PILOT_MONTHLY"),
                annual=_env_price("PRICE_PILOT_ANNUAL"),
                invoice=_env_price("PRICE_PILOT_INVOICE"),
            ),
            supports_invoice=True,
        ),
        "essential": Plan(
            id="essential",
            name="Essential",
            display_price="$39",
            description="Perfect for volunteer or single-station departments.",
            user_count="Unlimited users",
            asset_count="Up to 300 assets",
            core_modules="Same core features as Pilot",
            features=[
                "Everything in Pilot",
                "5-yr PDF archive",
                "CSV import/export",
                "Email support + updates",
            ],
            cta_text="Choose Essential",
            pricing=StripePricing(
                monthly=_env_price("PRICE_ESSENTIAL_MONTHLY"),
                annual=_env_price("PRICE_ESSENTIAL_ANNUAL"),
            ),
            annual_savings="$399/yr (save 15%)",
            supports_invoice=True,
        ),
        "pro": Plan(
            id="pro",
            name="Pro",
            display_price="$99",
            description="For career departments that need bigger capacity & audit automation.",
            user_count="Unlimited users",
            asset_count="Up to 1,500 assets",
            core_modules="Same core features as Essential",
            features=[
                "Advanced reporting",
                "Role-based permissions",
                "CSV integrations",
            ],
            cta_text="Upgrade to Pro",
            recommended=True,
            pricing=StripePricing(
                monthly=_env_price("PRICE_PRO_MONTHLY"),
                annual=_env_price("PRICE_PRO_ANNUAL"),
            ),
            annual_savings="$999/yr (save 15%)",
            supports_invoice=True,
        ),
        "contractor": Plan(
            id="contractor",
            name="Contractor",
            display_price="$279",
            description="Unlimited assets & child departments, ideal for hose-testing vendors.",
            user_count="Unlimited users",
            asset_count="Unlimited assets",
            core_modules="All core features + White Label",
            features=[
                "Unlimited departments & assets",
                "White-label PDF & portal",
                "CSV/PDF exports",
                "Priority support",
            ],
            cta_text="Get Contractor",
            pricing=StripePricing(
                monthly=_env_price("PRICE_CONTRACTOR_MONTHLY"),
                annual=_env_price("PRICE_CONTRACTOR_ANNUAL"),
            ),
            annual_savings="$2,999/yr (save 10%)",
            supports_invoice=True,
        ),
        "enterprise": Plan(
            id="enterprise",
            name="Enterprise",
            display_price="Custom",
            description="County-wide or multi-station? Let's craft a custom solution.",
            user_count="Unlimited users & assets",
            asset_count="Unlimited assets",
            core_modules="All modules + custom SLAs",
            features=[
                "White-glove onboarding",
                "Dedicated account manager",
                "Phone support",
                "Custom contract terms",
            ],
            cta_text="Contact Sales",
            is_enterprise=True,
            # Enterprise is quoted; there is no annual list price
            pricing=StripePricing(monthly=_env_price("PRICE_ENTERPRISE_MONTHLY")),
            supports_invoice=True,
        ),
    }


FIREGAUGE_PLANS: Dict[str, Plan] = build_plans()


def get_plan_by_id(plan_id: str) -> Optional[Plan]:
    return FIREGAUGE_PLANS.get(plan_id)


def get_all_plans() -> List[Plan]:
    return list(FIREGAUGE_PLANS.values())


def plan_supports_invoice(plan_id: str) -> bool:
    plan = FIREGAUGE_PLANS.get(plan_id)
    return bool(plan and plan.supports_invoice)


def plan_supports_annual(plan_id: str) -> bool:
    plan = FIREGAUGE_PLANS.get(plan_id)
    return bool(plan and plan.pricing.annual)


def get_stripe_price_id(plan_id: str, cycle: BillingCycle | str) -> Optional[str]:
    """
    Stripe price id for a plan and billing cycle.

    Invoice billing uses the same recurring prices as card subscriptions.

    Returns:
        The price id, or None for unknown plans, unknown cycles and
        unconfigured prices
    """
    plan = FIREGAUGE_PLANS.get(plan_id)
    if not plan:
        return None

    try:
        cycle = BillingCycle(cycle)
    except ValueError:
        return None

    if cycle == BillingCycle.ANNUAL:
        price_id = plan.pricing.annual
    else:
        price_id = plan.pricing.monthly
    return price_id or None
