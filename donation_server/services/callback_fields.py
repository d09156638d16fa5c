"""Normalization of PayU callback payloads.

PayU is not consistent about how it names echoed fields: the same value may
arrive as ``udf4``, ``udf_4``, ``udf[4]`` or ``UDF4`` depending on the
channel and integration. Every logical field is therefore resolved through an
ordered list of candidate keys, first match wins.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence


def _udf(n: int) -> tuple:
    return (f"udf{n}", f"udf_{n}", f"udf[{n}]", f"UDF{n}", f"UDF_{n}")


FIELD_ALIASES: Dict[str, tuple] = {
    "txnid": ("txnid", "TXNID", "txnId"),
    "amount": ("amount", "AMOUNT"),
    "status": ("status", "STATUS"),
    "email": ("email", "EMAIL"),
    "firstname": ("firstname", "FIRSTNAME", "firstName"),
    "productinfo": ("productinfo", "PRODUCTINFO", "productInfo"),
    "udf1": _udf(1),
    "udf2": _udf(2),
    "udf3": _udf(3),
    "udf4": _udf(4),
    "udf5": _udf(5),
    "hash": ("hash", "HASH"),
    "mihpayid": ("mihpayid", "MIHPAYID"),
    "mode": ("mode", "MODE"),
    "bank_ref_num": ("bank_ref_num", "BANK_REF_NUM", "bankRefNum"),
    "error_message": ("error_Message", "error", "Error_Message", "ERROR_MESSAGE"),
    "field9": ("field9", "field_9", "field[9]", "FIELD9"),
}


def first_present(payload: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    """Return the first non-empty value among ``keys`` as a string."""
    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        value = str(value)
        if value != "":
            return value
    return None


def parse_donation_id(value: Optional[str]) -> Optional[str]:
    """Return the donation id to look up, or None when udf4 is absent or blank.

    UUIDs are canonicalized; any other value is looked up as given.
    """
    value = (value or "").strip()
    if not value:
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return value


@dataclass(frozen=True)
class GatewayCallback:
    txnid: Optional[str] = None
    amount: Optional[str] = None
    status: Optional[str] = None
    email: Optional[str] = None
    firstname: Optional[str] = None
    productinfo: Optional[str] = None
    udf1: Optional[str] = None
    udf2: Optional[str] = None
    udf3: Optional[str] = None
    udf4: Optional[str] = None
    udf5: Optional[str] = None
    hash: Optional[str] = None
    mihpayid: Optional[str] = None
    mode: Optional[str] = None
    bank_ref_num: Optional[str] = None
    error_message: Optional[str] = None
    field9: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "GatewayCallback":
        values = {name: first_present(payload, keys) for name, keys in FIELD_ALIASES.items()}
        return cls(raw=dict(payload), **values)

    @property
    def donation_id(self) -> Optional[str]:
        return parse_donation_id(self.udf4)
