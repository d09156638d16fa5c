"""Outbound side of the PayU integration: donation intent to signed form fields."""

import logging
import math
import secrets
import time
from dataclasses import dataclass, field
from hashlib import sha512
from typing import Any, Dict, Iterable, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from donation_server.config import PayUConfig
from donation_server.services import donation_service

DEFAULT_PRODUCTINFO = "Donation"
DEFAULT_PHONE = "9999999999"
# PayU expects udf6..udf10 in the hash even though they are never sent
EMPTY_UDF_SLOTS = 5


def sha512_hex(parts: Iterable[str]) -> str:
    return sha512("|".join(parts).encode("utf-8")).hexdigest()


def _to_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    # NaN and infinities cannot be stored or charged
    return result if math.isfinite(result) else default


def _to_int(value: Any, default: int = 1) -> int:
    try:
        result = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return result if result >= 1 else default


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


@dataclass
class InitiationResult:
    ok: bool
    error: Optional[str] = None
    payment_data: Dict[str, str] = field(default_factory=dict)
    payu_url: Optional[str] = None
    donation_id: Optional[str] = None


class PayUClient:
    def __init__(self, config: PayUConfig):
        self.config = config

    @staticmethod
    def generate_txnid() -> str:
        return f"TXN{int(time.time() * 1000)}{secrets.randbelow(10 ** 6):06d}"

    def request_hash(self, data: Mapping[str, str]) -> str:
        """sha512(key|txnid|amount|productinfo|firstname|email|udf1..udf5||||||salt)"""
        parts = [
            self.config.merchant_key,
            data["txnid"],
            data["amount"],
            data["productinfo"],
            data["firstname"],
            data["email"],
        ]
        parts += [data.get(f"udf{n}") or "" for n in range(1, 6)]
        parts += [""] * EMPTY_UDF_SLOTS
        parts.append(self.config.merchant_salt)
        return sha512_hex(parts)

    @staticmethod
    def validate(intent: Mapping[str, Any]) -> Optional[str]:
        if not intent.get("amount") or not _text(intent.get("firstname")) or not _text(intent.get("email")):
            return "Amount, firstname, and email are required"
        if not _text(intent.get("category")):
            return "Category is required"
        amount = _to_float(intent.get("amount"))
        if amount is None or amount <= 0:
            return "Amount must be a positive number"
        return None

    def build_payment_data(
        self, intent: Mapping[str, Any], txnid: str, donation_id: str, quantity: int
    ) -> Dict[str, str]:
        data = {
            "key": self.config.merchant_key,
            "txnid": txnid,
            "amount": f"{_to_float(intent['amount']):.2f}",
            "productinfo": _text(intent.get("productinfo")) or DEFAULT_PRODUCTINFO,
            "firstname": _text(intent["firstname"]),
            "email": _text(intent["email"]),
            "phone": _text(intent.get("phone")) or DEFAULT_PHONE,
            "surl": self.config.success_url,
            "furl": self.config.failure_url,
            "curl": self.config.cancel_url,
            "notify_url": self.config.notify_url,
            "udf1": _text(intent["category"]),
            "udf2": _text(intent.get("item")),
            "udf3": str(quantity),
            "udf4": donation_id,
            "udf5": _text(intent.get("userId")),
        }
        data["hash"] = self.request_hash(data)
        return data

    async def initiate(self, db: AsyncSession, intent: Mapping[str, Any]) -> InitiationResult:
        """Persist a Pending donation and return the signed PayU form fields.

        Validation failures come back as ``InitiationResult(ok=False)``
        before anything is written. Database errors propagate to the caller.
        """
        error = self.validate(intent)
        if error:
            return InitiationResult(ok=False, error=error)

        txnid = self.generate_txnid()
        quantity = _to_int(intent.get("quantity"), 1)
        donation = await donation_service.create_pending_donation(
            db,
            transaction_id=txnid,
            donor_name=_text(intent["firstname"]),
            donor_email=_text(intent["email"]),
            donor_phone=_text(intent.get("phone")),
            category_id=_text(intent["category"]),
            user_id=_text(intent.get("userId")) or None,
            item=_text(intent.get("item")) or _text(intent.get("productinfo")) or DEFAULT_PRODUCTINFO,
            quantity=quantity,
            amount=_to_float(intent["amount"]),
            base_amount=_to_float(intent.get("baseAmount"), 0.0),
            extra_amount=_to_float(intent.get("extraAmount"), 0.0),
        )
        logging.info("Donation %s created for txnid=%s", donation.id, txnid)

        payment_data = self.build_payment_data(intent, txnid, donation.id, quantity)
        return InitiationResult(
            ok=True,
            payment_data=payment_data,
            payu_url=self.config.payment_url,
            donation_id=donation.id,
        )
