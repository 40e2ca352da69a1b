"""
Payload converters for Cloud Pub/Sub messages.

A converter turns an application payload plus a header mapping into a
``PubsubMessage`` and back. The template holds one converter instance and
shares it between its publishing and subscribing halves.
"""

import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Dict, Optional, Type

from google.pubsub_v1.types import PubsubMessage
from pydantic import TypeAdapter

from ..exceptions import ConversionError

logger = logging.getLogger(__name__)

# Header carrying the ordering key; moved out of the attributes on conversion
ORDERING_KEY_HEADER = "gcp_pubsub_ordering_key"

# Parameter names of PublisherClient.publish(); attributes travel as its
# keyword arguments, so they cannot use these names.
RESERVED_ATTRIBUTE_NAMES = frozenset({"topic", "data", "ordering_key", "retry", "timeout"})


class PubSubMessageConverter(ABC):
    """Converts between payloads and ``PubsubMessage`` envelopes."""

    @abstractmethod
    def to_pubsub_message(
        self,
        payload: Any,
        headers: Optional[Dict[str, str]] = None
    ) -> PubsubMessage:
        """
        Build a message from a payload and headers.

        Raises:
            ConversionError: If the payload cannot be serialized.
        """

    @abstractmethod
    def from_pubsub_message(self, message: PubsubMessage, payload_type: Type) -> Any:
        """
        Decode a message body into ``payload_type``.

        Raises:
            ConversionError: If the body cannot be decoded into the type.
        """

    def _build_message(self, data: bytes, headers: Optional[Dict[str, str]]) -> PubsubMessage:
        attributes = dict(headers or {})
        for key, value in attributes.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise ConversionError(
                    f"Pub/Sub headers must map strings to strings; got {key!r}: {value!r}"
                )
            if key in RESERVED_ATTRIBUTE_NAMES:
                raise ConversionError(f"Header name '{key}' is reserved by the Pub/Sub publisher client")

        ordering_key = attributes.pop(ORDERING_KEY_HEADER, "")
        return PubsubMessage(data=data, attributes=attributes, ordering_key=ordering_key)


class SimplePubSubMessageConverter(PubSubMessageConverter):
    """
    Converter for raw payloads: ``bytes``, ``bytearray`` and ``str``.

    Strings are encoded with ``charset`` (UTF-8 by default).
    """

    def __init__(self, charset: str = "utf-8"):
        self.charset = charset

    def to_pubsub_message(self, payload, headers=None):
        if isinstance(payload, (bytes, bytearray)):
            data = bytes(payload)
        elif isinstance(payload, str):
            try:
                data = payload.encode(self.charset)
            except UnicodeEncodeError as e:
                raise ConversionError(f"Failed to encode payload as {self.charset}") from e
        else:
            raise ConversionError(
                f"Unable to convert payload of type {type(payload).__name__} to a Pub/Sub message; "
                f"supported types are bytes, bytearray and str"
            )
        return self._build_message(data, headers)

    def from_pubsub_message(self, message, payload_type):
        data = message.data
        if payload_type is bytes:
            return bytes(data)
        if payload_type is bytearray:
            return bytearray(data)
        if payload_type is str:
            try:
                return data.decode(self.charset)
            except UnicodeDecodeError as e:
                raise ConversionError(f"Failed to decode message body as {self.charset}") from e
        raise ConversionError(
            f"Unable to convert Pub/Sub message to {getattr(payload_type, '__name__', payload_type)}; "
            f"supported types are bytes, bytearray and str"
        )


@lru_cache(maxsize=256)
def _type_adapter(payload_type: Any) -> TypeAdapter:
    return TypeAdapter(payload_type)


class JsonPubSubMessageConverter(PubSubMessageConverter):
    """
    JSON converter backed by pydantic.

    Handles anything pydantic can serialize and validate: models,
    dataclasses, typed dicts, lists and plain JSON values.
    """

    def to_pubsub_message(self, payload, headers=None):
        try:
            data = _type_adapter(type(payload)).dump_json(payload)
        except (TypeError, ValueError) as e:
            raise ConversionError(
                f"Unable to serialize payload of type {type(payload).__name__} to JSON"
            ) from e
        return self._build_message(data, headers)

    def from_pubsub_message(self, message, payload_type):
        try:
            return _type_adapter(payload_type).validate_json(message.data)
        except (TypeError, ValueError) as e:
            raise ConversionError(
                f"Unable to deserialize Pub/Sub message into {getattr(payload_type, '__name__', payload_type)}"
            ) from e
