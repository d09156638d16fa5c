"""PayU merchant settings loaded from the environment or ``.env``."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

load_dotenv()

TRUTHY = ("1", "true", "yes", "on")


def _flag(name: str) -> bool:
    return (os.getenv(name, "") or "").strip().lower() in TRUTHY


class PayUConfig(BaseModel):
    """Immutable bundle of merchant credentials and callback URLs.

    Built once per request by :func:`get_payu_config` and handed to the
    gateway client, the response verifier and the reconciliation engine.
    """

    model_config = ConfigDict(frozen=True)

    merchant_key: str
    merchant_salt: str
    base_url: str = "https://test.payu.in"

    success_url: str = "http://localhost:8000/api/payment/success"
    failure_url: str = "http://localhost:8000/api/payment/failure"
    cancel_url: str = "http://localhost:8000/api/payment/cancel"
    notify_url: str = "http://localhost:8000/api/payment/webhook"

    frontend_success_url: str = "http://localhost:5173/payment-success"
    frontend_failure_url: str = "http://localhost:5173/payment-failure"

    # Off by default: the failure/cancel redirects are accepted unsigned
    verify_failure_hash: bool = False
    # Off by default: a late callback may overwrite a terminal payment status
    guard_terminal_states: bool = False

    @property
    def payment_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/_payment"

    @classmethod
    def from_env(cls) -> "PayUConfig":
        merchant_key = (os.getenv("PAYU_MERCHANT_KEY") or "").strip()
        merchant_salt = (os.getenv("PAYU_MERCHANT_SALT") or "").strip()
        if not merchant_key or not merchant_salt:
            raise RuntimeError(
                "PayU credentials are not configured "
                "(set PAYU_MERCHANT_KEY and PAYU_MERCHANT_SALT)."
            )

        optional = {
            "base_url": os.getenv("PAYU_BASE_URL"),
            "success_url": os.getenv("SUCCESS_URL"),
            "failure_url": os.getenv("FAILURE_URL"),
            "cancel_url": os.getenv("CANCEL_URL"),
            "notify_url": os.getenv("NOTIFY_URL"),
            "frontend_success_url": os.getenv("FRONTEND_SUCCESS_URL"),
            "frontend_failure_url": os.getenv("FRONTEND_FAILURE_URL"),
        }
        return cls(
            merchant_key=merchant_key,
            merchant_salt=merchant_salt,
            verify_failure_hash=_flag("PAYU_VERIFY_FAILURE_HASH"),
            guard_terminal_states=_flag("PAYU_GUARD_TERMINAL_STATES"),
            **{k: v for k, v in optional.items() if v},
        )
