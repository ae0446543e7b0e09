import json

import pytest

from paybridge.orders.adapters import FunctionRuntimeAdapter, JsonEnvelopeAdapter
from paybridge.orders.errors import ValidationError

VERIFY = {"providerOrderId": "pi_1", "providerPaymentId": "pay_1", "providerSignature": "abc"}
CREATE = {"userId": "u1", "items": [{"productId": "p1", "quantity": 1}]}


@pytest.fixture()
def adapter():
    return JsonEnvelopeAdapter()


def test_action_and_payload_envelope(adapter):
    req = adapter.normalize({"action": "createOrder", "payload": CREATE})
    assert req.action == "createOrder"
    assert req.payload == CREATE


def test_action_matching_is_case_insensitive(adapter):
    assert adapter.normalize({"action": "VERIFYPAYMENT", "payload": VERIFY}).action == "verifyPayment"
    assert adapter.normalize({"action": "createorder", "payload": CREATE}).action == "createOrder"


def test_action_nested_in_payload(adapter):
    req = adapter.normalize({"payload": {"action": "verifyPayment", **VERIFY}})
    assert req.action == "verifyPayment"
    assert req.payload["providerPaymentId"] == "pay_1"


def test_flat_body_infers_action(adapter):
    assert adapter.normalize(VERIFY).action == "verifyPayment"
    flat = adapter.normalize(CREATE)
    assert flat.action == "createOrder"
    assert flat.payload == CREATE


def test_json_text_and_bytes_are_parsed(adapter):
    raw = json.dumps({"action": "createOrder", "payload": CREATE})
    assert adapter.normalize(raw).payload == CREATE
    assert adapter.normalize(raw.encode("utf-8")).action == "createOrder"


def test_empty_body_defaults_to_create(adapter):
    req = adapter.normalize(None)
    assert req.action == "createOrder"
    assert req.payload == {}


def test_unknown_action_is_kept_for_the_controller(adapter):
    assert adapter.normalize({"action": "refund", "payload": {}}).action == "refund"


@pytest.mark.parametrize("raw,message", [
    ("{not json", "Invalid JSON body"),
    ([1, 2], "Invalid request body"),
    ("[1, 2]", "Invalid request body"),
])
def test_unusable_bodies_are_rejected(adapter, raw, message):
    with pytest.raises(ValidationError) as exc:
        adapter.normalize(raw)
    assert exc.value.message == message


# --- runtime serverless ---
@pytest.fixture()
def runtime():
    return FunctionRuntimeAdapter()


def _envelope(payload):
    return json.dumps({"action": "verifyPayment", "payload": payload})


def test_runtime_body_json(runtime):
    req = runtime.normalize({"bodyJson": {"action": "verifyPayment", "payload": VERIFY}, "body": "ignored"})
    assert req.action == "verifyPayment"
    assert req.payload == VERIFY


def test_runtime_unwraps_req_and_parses_body_string(runtime):
    req = runtime.normalize({"req": {"body": _envelope(VERIFY)}, "res": {}})
    assert req.action == "verifyPayment"
    assert req.payload == VERIFY


@pytest.mark.parametrize("field", ["bodyText", "bodyRaw"])
def test_runtime_text_fields(runtime, field):
    req = runtime.normalize({field: _envelope(VERIFY)})
    assert req.payload == VERIFY


def test_runtime_body_object(runtime):
    assert runtime.normalize({"body": CREATE}).payload == CREATE


def test_runtime_binary_body(runtime):
    data = list(_envelope(VERIFY).encode("utf-8"))
    req = runtime.normalize({"bodyBinary": {"data": data}})
    assert req.action == "verifyPayment"


def test_runtime_unreadable_body_becomes_empty_create(runtime):
    req = runtime.normalize({"body": "{broken"})
    assert req.action == "createOrder"
    assert req.payload == {}
