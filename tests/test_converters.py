from typing import List

import pytest
from google.pubsub_v1.types import PubsubMessage
from pydantic import BaseModel

from gcp_templates.exceptions import ConversionError
from gcp_templates.pubsub.converters import (
    ORDERING_KEY_HEADER,
    JsonPubSubMessageConverter,
    SimplePubSubMessageConverter,
)


class Order(BaseModel):
    order_id: str
    quantity: int
    tags: List[str] = []


class Opaque:
    pass


def test_simple_string_round_trip():
    converter = SimplePubSubMessageConverter()

    message = converter.to_pubsub_message("héllo", {"source": "unit"})

    assert message.data == "héllo".encode("utf-8")
    assert dict(message.attributes) == {"source": "unit"}
    assert converter.from_pubsub_message(message, str) == "héllo"


def test_simple_bytes_without_headers():
    converter = SimplePubSubMessageConverter()

    message = converter.to_pubsub_message(b"\x00\x01")

    assert message.data == b"\x00\x01"
    assert dict(message.attributes) == {}
    assert converter.from_pubsub_message(message, bytes) == b"\x00\x01"
    assert converter.from_pubsub_message(message, bytearray) == bytearray(b"\x00\x01")


def test_simple_custom_charset():
    converter = SimplePubSubMessageConverter(charset="utf-16")

    message = converter.to_pubsub_message("text")

    assert message.data == "text".encode("utf-16")
    assert converter.from_pubsub_message(message, str) == "text"


def test_ordering_key_header_moves_to_envelope():
    converter = SimplePubSubMessageConverter()

    message = converter.to_pubsub_message("x", {ORDERING_KEY_HEADER: "customer-1", "a": "b"})

    assert message.ordering_key == "customer-1"
    assert dict(message.attributes) == {"a": "b"}


def test_simple_rejects_unsupported_payload():
    with pytest.raises(ConversionError):
        SimplePubSubMessageConverter().to_pubsub_message(42)


def test_simple_rejects_unsupported_target_type():
    message = PubsubMessage(data=b"42")

    with pytest.raises(ConversionError):
        SimplePubSubMessageConverter().from_pubsub_message(message, int)


def test_simple_rejects_undecodable_bytes():
    message = PubsubMessage(data=b"\xff\xfe\xfa")

    with pytest.raises(ConversionError):
        SimplePubSubMessageConverter().from_pubsub_message(message, str)


def test_headers_must_be_strings():
    with pytest.raises(ConversionError):
        SimplePubSubMessageConverter().to_pubsub_message("x", {"retries": 3})


def test_json_model_round_trip():
    converter = JsonPubSubMessageConverter()
    order = Order(order_id="A-1", quantity=3, tags=["rush"])

    message = converter.to_pubsub_message(order, {"type": "order"})

    assert dict(message.attributes) == {"type": "order"}
    assert converter.from_pubsub_message(message, Order) == order


def test_json_dict_round_trip():
    converter = JsonPubSubMessageConverter()
    payload = {"name": "widget", "sizes": [1, 2, 3]}

    message = converter.to_pubsub_message(payload)

    assert converter.from_pubsub_message(message, dict) == payload


def test_json_rejects_invalid_body():
    message = PubsubMessage(data=b'{"order_id": "A-1"}')

    with pytest.raises(ConversionError):
        JsonPubSubMessageConverter().from_pubsub_message(message, Order)


def test_json_rejects_unserializable_payload():
    with pytest.raises(ConversionError):
        JsonPubSubMessageConverter().to_pubsub_message(Opaque())


@pytest.mark.parametrize("name", ["topic", "data", "ordering_key", "retry", "timeout"])
def test_publisher_parameter_names_are_rejected_as_headers(name):
    with pytest.raises(ConversionError, match=name):
        SimplePubSubMessageConverter().to_pubsub_message("x", {name: "value"})
