"""
Publishing half of the Pub/Sub template.

Converts payloads with the shared converter and hands envelopes to the
publisher client supplied by a ``PublisherFactory``.
"""

import logging
from concurrent.futures import Future
from typing import Any, Dict, Optional

from google.pubsub_v1.types import PubsubMessage

from ..exceptions import PublishError
from .converters import RESERVED_ATTRIBUTE_NAMES, PubSubMessageConverter, SimplePubSubMessageConverter
from .futures import failed_future
from .paths import to_topic_path

logger = logging.getLogger(__name__)


class PubSubPublisherTemplate:
    """
    Publishes messages to Cloud Pub/Sub topics.

    Every publish returns a ``concurrent.futures.Future`` resolving to the
    server-assigned message id. Failures resolve the future with
    ``PublishError``; they are never raised from ``publish`` itself.
    """

    def __init__(
        self,
        publisher_factory,
        message_converter: Optional[PubSubMessageConverter] = None
    ):
        if publisher_factory is None:
            raise ValueError("The publisherFactory can't be null.")
        self.publisher_factory = publisher_factory
        self.message_converter = message_converter or SimplePubSubMessageConverter()

    def publish(
        self,
        topic: str,
        payload: Any,
        headers: Optional[Dict[str, str]] = None
    ) -> Future:
        """
        Publish a payload or a pre-built message.

        Args:
            topic: Short topic name or ``projects/<p>/topics/<t>`` path
            payload: A ``PubsubMessage``, or anything the converter accepts
            headers: Message attributes; ignored for pre-built messages

        Returns:
            Future resolving to the message id.

        Raises:
            ConversionError: If the payload cannot be converted.
        """
        if isinstance(payload, PubsubMessage):
            return self.publish_message(topic, payload)

        message = self.message_converter.to_pubsub_message(payload, headers)
        return self.publish_message(topic, message)

    def publish_message(self, topic: str, message: PubsubMessage) -> Future:
        """
        Publish a pre-built ``PubsubMessage``.

        Raises:
            ValueError: If the topic name cannot be resolved.
        """
        failure_text = f"Publishing to {topic} topic failed."
        topic_path = to_topic_path(topic, self.publisher_factory.project_id)

        reserved = sorted(RESERVED_ATTRIBUTE_NAMES.intersection(message.attributes))
        if reserved:
            logger.error(f"{failure_text} Reserved attribute names: {reserved}")
            return failed_future(PublishError(
                f"{failure_text} Attribute '{reserved[0]}' is reserved by the Pub/Sub publisher client.",
                failed_message=message
            ))

        try:
            publisher = self.publisher_factory.create_publisher(topic)

            kwargs = dict(message.attributes)
            if message.ordering_key:
                kwargs['ordering_key'] = message.ordering_key

            sdk_future = publisher.publish(topic_path, message.data, **kwargs)
        except Exception as e:
            logger.error(f"{failure_text} {e}")
            error = PublishError(failure_text, failed_message=message)
            error.__cause__ = e
            return failed_future(error)

        result = Future()

        def _on_done(done: Future) -> None:
            exc = done.exception()
            if exc is not None:
                logger.error(f"{failure_text} {exc}")
                error = PublishError(failure_text, failed_message=message)
                error.__cause__ = exc
                result.set_exception(error)
                return
            message_id = done.result()
            logger.debug(f"Published message {message_id} to {topic_path}")
            result.set_result(message_id)

        sdk_future.add_done_callback(_on_done)
        return result
