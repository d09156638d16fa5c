"""Payment status reconciliation for PayU callbacks.

Every inbound channel (redirect success, redirect failure/cancel and the
server-to-server webhook) ends up here. The engine decides which transition
a callback implies and writes it to the donation with one UPDATE by id.
Outcomes are returned as :class:`ReconcileResult` values; only
infrastructure errors raise.

Writes are last-writer-wins unless ``guard_terminal_states`` is enabled, in
which case only a Pending donation can be moved.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from donation_server.config import PayUConfig
from donation_server.models.donation import DonationStatus, PaymentStatus
from donation_server.services import donation_service
from donation_server.services.callback_fields import GatewayCallback
from donation_server.services.payu_verifier import ResponseVerifier

DEFAULT_FAILURE_MESSAGE = "Payment failed"
DEFAULT_CANCEL_MESSAGE = "Payment cancelled by user"

# gateway status (lowercased) -> (payment status, donation status)
WEBHOOK_STATUS_MAP: Dict[str, Tuple[str, str]] = {
    "success": (PaymentStatus.PAID, DonationStatus.APPROVED),
    "failure": (PaymentStatus.FAILED, DonationStatus.REJECTED),
    "pending": (PaymentStatus.PENDING, DonationStatus.PENDING),
    "in progress": (PaymentStatus.PENDING, DonationStatus.PENDING),
    "cancelled": (PaymentStatus.CANCELLED, DonationStatus.PENDING),
    "cancel": (PaymentStatus.CANCELLED, DonationStatus.PENDING),
}
DEFAULT_WEBHOOK_TRANSITION = (PaymentStatus.PENDING, DonationStatus.PENDING)


class Outcome(str, Enum):
    APPLIED = "applied"
    INVALID_HASH = "invalid_hash"
    MISSING_ID = "missing_id"
    NOT_FOUND = "not_found"
    ALREADY_FINAL = "already_final"


@dataclass(frozen=True)
class ReconcileResult:
    outcome: Outcome
    donation_id: Optional[str] = None
    payment_status: Optional[str] = None
    status: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.APPLIED


def map_gateway_status(gateway_status: Optional[str]) -> Tuple[str, str]:
    key = (gateway_status or "").strip().lower()
    return WEBHOOK_STATUS_MAP.get(key, DEFAULT_WEBHOOK_TRANSITION)


def failure_texts(callback: GatewayCallback, default_message: str) -> Tuple[str, str]:
    """Return ``(failure_reason, error_message)`` exactly as PayU reported them."""
    error_message = callback.error_message or default_message
    failure_reason = callback.field9 or error_message
    return failure_reason, error_message


def _to_float(value: Optional[str]) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def payment_details(callback: GatewayCallback, default_status: Optional[str] = None) -> Dict[str, Any]:
    return {
        "mihpayid": callback.mihpayid,
        "amount": _to_float(callback.amount),
        "mode": callback.mode,
        "bank_ref_num": callback.bank_ref_num,
        "paymentDate": datetime.utcnow().isoformat(),
        "status": callback.status or default_status,
        "error_Message": callback.error_message,
    }


class ReconciliationEngine:
    def __init__(
        self,
        config: PayUConfig,
        db: AsyncSession,
        verifier: Optional[ResponseVerifier] = None,
    ):
        self.config = config
        self.db = db
        self.verifier = verifier or ResponseVerifier(config)

    async def confirm_success(self, callback: GatewayCallback) -> ReconcileResult:
        if not self.verifier.verify(callback):
            logging.warning(
                "Hash verification failed on success callback: txnid=%s udf4=%s",
                callback.txnid,
                callback.udf4,
            )
            return ReconcileResult(Outcome.INVALID_HASH, donation_id=callback.donation_id)

        return await self._transition(
            callback,
            PaymentStatus.PAID,
            DonationStatus.APPROVED,
            payment_details(callback, default_status="success"),
        )

    async def record_failure(self, callback: GatewayCallback) -> ReconcileResult:
        return await self._record_unsuccessful(
            callback,
            PaymentStatus.FAILED,
            DonationStatus.REJECTED,
            DEFAULT_FAILURE_MESSAGE,
            default_status="failure",
        )

    async def record_cancel(self, callback: GatewayCallback) -> ReconcileResult:
        return await self._record_unsuccessful(
            callback,
            PaymentStatus.CANCELLED,
            DonationStatus.PENDING,
            DEFAULT_CANCEL_MESSAGE,
            default_status="cancelled",
        )

    async def apply_webhook(self, callback: GatewayCallback) -> ReconcileResult:
        if not self.verifier.verify(callback):
            logging.warning(
                "Hash verification failed on webhook: txnid=%s status=%s",
                callback.txnid,
                callback.status,
            )
            return ReconcileResult(Outcome.INVALID_HASH, donation_id=callback.donation_id)

        payment_status, status = map_gateway_status(callback.status)
        failure_reason = error_message = None
        if payment_status == PaymentStatus.FAILED:
            failure_reason, error_message = failure_texts(callback, DEFAULT_FAILURE_MESSAGE)
        elif payment_status == PaymentStatus.CANCELLED:
            failure_reason, error_message = failure_texts(callback, DEFAULT_CANCEL_MESSAGE)

        return await self._transition(
            callback,
            payment_status,
            status,
            payment_details(callback),
            failure_reason=failure_reason,
            error_message=error_message,
        )

    async def _record_unsuccessful(
        self,
        callback: GatewayCallback,
        payment_status: str,
        status: str,
        default_message: str,
        default_status: str,
    ) -> ReconcileResult:
        failure_reason, error_message = failure_texts(callback, default_message)

        if self.config.verify_failure_hash and not self.verifier.verify(callback):
            logging.warning(
                "Hash verification failed on %s callback: txnid=%s",
                default_status,
                callback.txnid,
            )
            return ReconcileResult(
                Outcome.INVALID_HASH,
                donation_id=callback.donation_id,
                error_message=error_message,
            )

        logging.info(
            "PayU reported %s for txnid=%s: error=%r reason=%r",
            default_status,
            callback.txnid,
            error_message,
            failure_reason,
        )
        return await self._transition(
            callback,
            payment_status,
            status,
            payment_details(callback, default_status=default_status),
            failure_reason=failure_reason,
            error_message=error_message,
        )

    async def _transition(
        self,
        callback: GatewayCallback,
        payment_status: str,
        status: str,
        details: Dict[str, Any],
        failure_reason: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> ReconcileResult:
        donation_id = callback.donation_id
        if donation_id is None:
            logging.error(
                "Unreconciled callback: no usable donation id (udf4=%r, txnid=%s)",
                callback.udf4,
                callback.txnid,
            )
            return ReconcileResult(Outcome.MISSING_ID, error_message=error_message)

        values: Dict[str, Any] = {
            "payment_status": payment_status,
            "status": status,
            "payment_details": details,
        }
        if callback.txnid:
            values["transaction_id"] = callback.txnid
        if payment_status in (PaymentStatus.FAILED, PaymentStatus.CANCELLED):
            values["failure_reason"] = failure_reason
            values["error_message"] = error_message

        guard = self.config.guard_terminal_states
        matched = await donation_service.update_donation(
            self.db, donation_id, values, only_if_pending=guard
        )
        if matched:
            logging.info(
                "Donation %s -> paymentStatus=%s status=%s (txnid=%s)",
                donation_id,
                payment_status,
                status,
                callback.txnid,
            )
            return ReconcileResult(
                Outcome.APPLIED,
                donation_id=donation_id,
                payment_status=payment_status,
                status=status,
                error_message=error_message,
            )

        if guard:
            current = await donation_service.get_donation(self.db, donation_id)
            if current is not None:
                logging.warning(
                    "Donation %s already %s; ignoring %s from txnid=%s",
                    donation_id,
                    current.payment_status,
                    payment_status,
                    callback.txnid,
                )
                return ReconcileResult(
                    Outcome.ALREADY_FINAL,
                    donation_id=donation_id,
                    payment_status=current.payment_status,
                    status=current.status,
                    error_message=error_message,
                )

        logging.error("Donation %s not found (txnid=%s)", donation_id, callback.txnid)
        return ReconcileResult(Outcome.NOT_FOUND, donation_id=donation_id, error_message=error_message)
