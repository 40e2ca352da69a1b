"""
Acknowledgeable message handles.

A handle pairs a received ``PubsubMessage`` with the ack id and the
subscription it came from. Callers own each handle until they ack or nack
it; the ack deadline itself is tracked by Pub/Sub.
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import Any, Generic, TypeVar

from google.pubsub_v1.types import PubsubMessage

T = TypeVar("T")


class AcknowledgeablePubsubMessage(ABC):
    """A received message that can be acked, nacked or have its deadline changed."""

    def __init__(self, subscription_path: str, pubsub_message: PubsubMessage):
        self.subscription_path = subscription_path
        self.pubsub_message = pubsub_message

    @property
    @abstractmethod
    def ack_id(self) -> str:
        """Ack id assigned by Pub/Sub for this delivery."""

    @abstractmethod
    def ack(self) -> Future:
        """Acknowledge the message."""

    @abstractmethod
    def nack(self) -> Future:
        """Ask Pub/Sub to redeliver the message as soon as possible."""

    @abstractmethod
    def modify_ack_deadline(self, ack_deadline_seconds: int) -> Future:
        """Change the redelivery deadline of the message."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(subscription={self.subscription_path!r}, "
            f"message_id={self.pubsub_message.message_id!r}, ack_id={self.ack_id!r})"
        )


class PulledAcknowledgeablePubsubMessage(AcknowledgeablePubsubMessage):
    """Handle for a message obtained by a synchronous or asynchronous pull."""

    def __init__(
        self,
        subscription_path: str,
        pubsub_message: PubsubMessage,
        ack_id: str,
        subscriber_template: Any
    ):
        super().__init__(subscription_path, pubsub_message)
        self._ack_id = ack_id
        self._subscriber_template = subscriber_template

    @property
    def ack_id(self) -> str:
        return self._ack_id

    def ack(self) -> Future:
        return self._subscriber_template.ack([self])

    def nack(self) -> Future:
        return self._subscriber_template.nack([self])

    def modify_ack_deadline(self, ack_deadline_seconds: int) -> Future:
        return self._subscriber_template.modify_ack_deadline([self], ack_deadline_seconds)


class BasicAcknowledgeablePubsubMessage(AcknowledgeablePubsubMessage):
    """
    Handle for a message delivered by a streaming subscription.

    Wraps the SDK's ``google.cloud.pubsub_v1.subscriber.message.Message``,
    whose lease is managed by the streaming client.
    """

    def __init__(self, subscription_path: str, message: Any):
        pubsub_message = PubsubMessage(
            data=message.data,
            attributes=dict(message.attributes),
            message_id=message.message_id,
            ordering_key=message.ordering_key or "",
        )
        super().__init__(subscription_path, pubsub_message)
        self._message = message

    @property
    def ack_id(self) -> str:
        return self._message.ack_id

    @property
    def delivery_attempt(self):
        return self._message.delivery_attempt

    def ack(self) -> Future:
        return self._message.ack_with_response()

    def nack(self) -> Future:
        return self._message.nack_with_response()

    def modify_ack_deadline(self, ack_deadline_seconds: int) -> Future:
        return self._message.modify_ack_deadline_with_response(ack_deadline_seconds)


class ConvertedAcknowledgeablePubsubMessage(Generic[T]):
    """An acknowledgeable handle together with its decoded payload."""

    def __init__(self, handle: AcknowledgeablePubsubMessage, payload: T):
        self.handle = handle
        self.payload = payload

    @property
    def pubsub_message(self) -> PubsubMessage:
        return self.handle.pubsub_message

    @property
    def subscription_path(self) -> str:
        return self.handle.subscription_path

    @property
    def ack_id(self) -> str:
        return self.handle.ack_id

    def ack(self) -> Future:
        return self.handle.ack()

    def nack(self) -> Future:
        return self.handle.nack()

    def modify_ack_deadline(self, ack_deadline_seconds: int) -> Future:
        return self.handle.modify_ack_deadline(ack_deadline_seconds)

    def __repr__(self) -> str:
        return f"ConvertedAcknowledgeablePubsubMessage(payload={self.payload!r}, handle={self.handle!r})"
