import os
from dotenv import load_dotenv

load_dotenv(dotenv_path=".env")

# Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

# Site
SITE_URL = os.getenv("SITE_URL", "http://localhost:5173")
FUNCTIONS_URL = os.getenv("FUNCTIONS_URL", "http://localhost:8000/functions/v1")

# Resend (support requests)
RESEND_API_URL = "https://api.resend.com/emails"
SUPPORT_EMAIL_FROM = os.getenv("SUPPORT_EMAIL_FROM", "FireGauge Support <support@firegauge.app>")
SUPPORT_EMAIL_TO = os.getenv("SUPPORT_EMAIL_TO", "firegaugellc@gmail.com")


# Stripe
# Invoice items take `price` and subscriptions carry current_period_* on this version
STRIPE_API_VERSION = os.getenv("STRIPE_API_VERSION", "2023-10-16")


def get_stripe_mode() -> str:
    """Return 'live' or 'test'; anything other than 'live' means test"""
    mode = (os.getenv("STRIPE_MODE") or "test").strip().lower()
    return "live" if mode == "live" else "test"


def _by_mode(base_name: str) -> str | None:
    """Read <BASE>_LIVE / <BASE>_TEST for the current mode, falling back to <BASE>"""
    suffix = "LIVE" if get_stripe_mode() == "live" else "TEST"
    return os.getenv(f"{base_name}_{suffix}") or os.getenv(base_name)


def get_stripe_secret_key() -> str | None:
    return _by_mode("STRIPE_SECRET_KEY")


def get_stripe_publishable_key() -> str | None:
    return _by_mode("STRIPE_PUBLISHABLE_KEY")


def get_stripe_webhook_secret() -> str | None:
    return _by_mode("STRIPE_WEBHOOK_SECRET")


def get_resend_api_key() -> str | None:
    return os.getenv("RESEND_API_KEY")
