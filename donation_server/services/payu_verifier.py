"""Authentication of messages claiming to come from PayU."""

import hmac
from typing import List

from donation_server.config import PayUConfig
from donation_server.services.callback_fields import GatewayCallback
from donation_server.services.payu_client import EMPTY_UDF_SLOTS, sha512_hex


class ResponseVerifier:
    def __init__(self, config: PayUConfig):
        self.config = config

    def hash_parts(self, callback: GatewayCallback) -> List[str]:
        # Reverse of the request formula:
        # salt|status||||||udf5|udf4|udf3|udf2|udf1|email|firstname|productinfo|amount|txnid|key
        parts = [self.config.merchant_salt, callback.status or ""]
        parts += [""] * EMPTY_UDF_SLOTS
        parts += [
            callback.udf5 or "",
            callback.udf4 or "",
            callback.udf3 or "",
            callback.udf2 or "",
            callback.udf1 or "",
            callback.email or "",
            callback.firstname or "",
            callback.productinfo or "",
            callback.amount or "",
            callback.txnid or "",
            self.config.merchant_key,
        ]
        return parts

    def expected_hash(self, callback: GatewayCallback) -> str:
        return sha512_hex(self.hash_parts(callback))

    def verify(self, callback: GatewayCallback) -> bool:
        supplied = (callback.hash or "").strip().lower()
        if not supplied:
            return False
        return hmac.compare_digest(self.expected_hash(callback).encode(), supplied.encode("utf-8"))
