# app/config.py
import base64
import os
import re
from dataclasses import dataclass, field
from typing import List

# ----------------------------
#  Environment
# ----------------------------

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").strip().lower()
IS_PRODUCTION = ENVIRONMENT == "production"

LOG_LEVEL = os.getenv("LOG_LEVEL", "info").strip().upper()

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173").strip()

CLERK_PUBLISHABLE_KEY = os.getenv("CLERK_PUBLISHABLE_KEY", "").strip()
CLERK_SECRET_KEY = os.getenv("CLERK_SECRET_KEY", "").strip()
CLERK_JWKS_URL = os.getenv("CLERK_JWKS_URL", "").strip()
CLERK_API_URL = os.getenv("CLERK_API_URL", "https://api.clerk.com/v1").strip().rstrip("/")

DEFAULT_SHIPPING_FEE = float(os.getenv("DEFAULT_SHIPPING_FEE", "8"))
FREE_SHIPPING_THRESHOLD = float(os.getenv("FREE_SHIPPING_THRESHOLD", "200"))
ORDER_TOTAL_TOLERANCE = float(os.getenv("ORDER_TOTAL_TOLERANCE", "0.5"))

_PUBLISHABLE_KEY_RE = re.compile(r"pk_(?:test|live)_([A-Za-z0-9+/=_-]+)")


def cors_origins() -> List[str]:
    origins_env = os.getenv("CORS_ORIGINS", "")
    if origins_env:
        return [o.strip() for o in origins_env.split(",") if o.strip()]
    if IS_PRODUCTION:
        return [FRONTEND_URL]
    return ["http://localhost:5173", "http://localhost:8080", "http://localhost:8081"]


def jwks_url_from_publishable_key(publishable_key: str, fallback: str = "") -> str:
    """
    The Clerk publishable key embeds the frontend API host, base64 encoded
    and terminated by "$". The JWKS lives under /.well-known/jwks.json there.
    """
    match = _PUBLISHABLE_KEY_RE.search(publishable_key or "")
    if match:
        encoded = match.group(1)
        encoded += "=" * (-len(encoded) % 4)  # padding base64
        try:
            host = base64.b64decode(encoded).decode("utf-8").rstrip("$").strip()
        except (ValueError, UnicodeDecodeError):
            host = ""
        if host:
            return f"https://{host}/.well-known/jwks.json"
    return fallback


@dataclass
class Settings:
    environment: str = ENVIRONMENT
    frontend_url: str = FRONTEND_URL
    clerk_publishable_key: str = CLERK_PUBLISHABLE_KEY
    clerk_secret_key: str = CLERK_SECRET_KEY
    clerk_jwks_url: str = CLERK_JWKS_URL
    clerk_api_url: str = CLERK_API_URL
    default_shipping_fee: float = DEFAULT_SHIPPING_FEE
    free_shipping_threshold: float = FREE_SHIPPING_THRESHOLD
    order_total_tolerance: float = ORDER_TOTAL_TOLERANCE
    cors_origins: List[str] = field(default_factory=cors_origins)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def jwks_url(self) -> str:
        return jwks_url_from_publishable_key(self.clerk_publishable_key, self.clerk_jwks_url)


settings = Settings()


def production_config_errors(cfg: Settings) -> List[str]:
    if not cfg.is_production:
        return []

    errors: List[str] = []
    if "pk_test" in cfg.clerk_publishable_key:
        errors.append("CLERK_PUBLISHABLE_KEY contains 'pk_test' - use a pk_live_* key")
    if "sk_test" in cfg.clerk_secret_key:
        errors.append("CLERK_SECRET_KEY contains 'sk_test' - use a sk_live_* key")
    if not cfg.frontend_url.startswith("https://"):
        errors.append("FRONTEND_URL must use HTTPS in production")
    return errors


def check_production_config(cfg: Settings = settings) -> None:
    errors = production_config_errors(cfg)
    if errors:
        for e in errors:
            print(f"[BOOT] config error: {e}", flush=True)
        raise RuntimeError("Invalid production configuration: " + "; ".join(errors))
