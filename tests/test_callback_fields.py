import uuid

import pytest

from helpers import gateway_payload

from donation_server.services.callback_fields import (
    FIELD_ALIASES,
    GatewayCallback,
    first_present,
    parse_donation_id,
)


@pytest.mark.parametrize("key", ["udf4", "udf_4", "udf[4]", "UDF4"])
def test_donation_id_found_under_every_variant(key):
    donation_id = str(uuid.uuid4())
    callback = GatewayCallback.from_payload({key: donation_id})
    assert callback.udf4 == donation_id
    assert callback.donation_id == donation_id


def test_documented_name_wins_over_alternates():
    payload = {"udf[4]": "alt", "udf4": "documented"}
    assert first_present(payload, FIELD_ALIASES["udf4"]) == "documented"


def test_empty_values_fall_through_to_next_variant():
    payload = {"error_Message": "", "error": None, "Error_Message": "Card declined"}
    assert GatewayCallback.from_payload(payload).error_message == "Card declined"


def test_error_message_variant_order():
    payload = {"ERROR_MESSAGE": "last", "error": "second"}
    assert GatewayCallback.from_payload(payload).error_message == "second"


def test_field9_variants():
    assert GatewayCallback.from_payload({"field[9]": "Bank declined"}).field9 == "Bank declined"
    assert GatewayCallback.from_payload({"field_9": "Timeout"}).field9 == "Timeout"


def test_uppercase_gateway_fields():
    callback = GatewayCallback.from_payload(
        {"TXNID": "TXN1", "MIHPAYID": "99", "MODE": "CC", "BANK_REF_NUM": "BR1", "AMOUNT": "10.00"}
    )
    assert (callback.txnid, callback.mihpayid, callback.mode, callback.bank_ref_num, callback.amount) == (
        "TXN1",
        "99",
        "CC",
        "BR1",
        "10.00",
    )


def test_absent_fields_are_none():
    callback = GatewayCallback.from_payload({})
    assert callback.txnid is None
    assert callback.donation_id is None


@pytest.mark.parametrize("value", [None, "", "   "])
def test_blank_donation_id(value):
    assert parse_donation_id(value) is None


@pytest.mark.parametrize("value", ["not-a-uuid", " 507f1f77bcf86cd799439011 "])
def test_non_uuid_donation_id_is_kept_as_given(value):
    assert parse_donation_id(value) == value.strip()


def test_donation_id_is_canonicalized():
    donation_id = uuid.uuid4()
    assert parse_donation_id(f"  {str(donation_id).upper()} ") == str(donation_id)


def test_raw_payload_kept():
    payload = gateway_payload(str(uuid.uuid4()))
    callback = GatewayCallback.from_payload(payload)
    assert callback.raw == payload
    assert callback.status == "success"
