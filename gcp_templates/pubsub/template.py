"""
Cloud Pub/Sub template.

Single entry point for publishing to topics and consuming subscriptions,
either through streaming callbacks or by pulling.

Example:
    >>> template = create_pubsub_template()
    >>> template.publish("orders", "hello", {"source": "checkout"}).result()
    '4711'
    >>> for handle in template.pull("orders-sub", 10, True):
    ...     print(handle.pubsub_message.data)
    ...     handle.ack()
"""

import logging
from concurrent.futures import Executor, Future
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

from google.pubsub_v1.types import PubsubMessage

from ..config.credentials import load_credentials
from ..config.settings import TemplatesConfig, get_config
from .converters import PubSubMessageConverter
from .factories import DefaultPublisherFactory, DefaultSubscriberFactory
from .publisher import PubSubPublisherTemplate
from .subscriber import PubSubSubscriberTemplate

logger = logging.getLogger(__name__)


class PubSubTemplate:
    """
    Facade over a publisher template and a subscriber template.

    The two halves share one message converter; assigning
    ``message_converter`` replaces it on both. Replacement is not
    synchronized with in-flight conversions.
    """

    def __init__(
        self,
        publisher_factory=None,
        subscriber_factory=None,
        publisher_template: Optional[PubSubPublisherTemplate] = None,
        subscriber_template: Optional[PubSubSubscriberTemplate] = None,
        executor: Optional[Executor] = None
    ):
        """
        Build from factories, or from ready-made templates.

        Args:
            publisher_factory: Factory for publisher clients
            subscriber_factory: Factory for subscriber clients
            publisher_template: Used instead of ``publisher_factory``
            subscriber_template: Used instead of ``subscriber_factory``
            executor: Executor for asynchronous pulls and acks
        """
        if publisher_template is None:
            if publisher_factory is None:
                raise ValueError("The publisherFactory can't be null.")
            publisher_template = PubSubPublisherTemplate(publisher_factory)

        if subscriber_template is None:
            if subscriber_factory is None:
                raise ValueError("The subscriberFactory can't be null.")
            subscriber_template = PubSubSubscriberTemplate(subscriber_factory, executor=executor)

        self.publisher_template = publisher_template
        self.subscriber_template = subscriber_template
        self.subscriber_template.message_converter = self.publisher_template.message_converter

    @property
    def message_converter(self) -> PubSubMessageConverter:
        return self.publisher_template.message_converter

    @message_converter.setter
    def message_converter(self, converter: PubSubMessageConverter) -> None:
        if converter is None:
            raise ValueError("A valid Pub/Sub message converter is required.")
        self.publisher_template.message_converter = converter
        self.subscriber_template.message_converter = converter

    @property
    def publisher_factory(self):
        return self.publisher_template.publisher_factory

    @property
    def subscriber_factory(self):
        return self.subscriber_template.subscriber_factory

    def close(self) -> None:
        self.subscriber_template.close()

    # Publishing

    def publish(
        self,
        topic: str,
        payload: Any,
        headers: Optional[Dict[str, str]] = None
    ) -> Future:
        """Publish a ``PubsubMessage`` or a payload converted with the shared converter."""
        return self.publisher_template.publish(topic, payload, headers)

    # Subscribing

    def subscribe(self, subscription: str, callback: Callable):
        return self.subscriber_template.subscribe(subscription, callback)

    def subscribe_and_convert(self, subscription: str, callback: Callable, payload_type: Type):
        return self.subscriber_template.subscribe_and_convert(subscription, callback, payload_type)

    def pull(self, subscription: str, max_messages: int, return_immediately: bool = False) -> List:
        return self.subscriber_template.pull(subscription, max_messages, return_immediately)

    def pull_async(self, subscription: str, max_messages: int, return_immediately: bool = False) -> Future:
        return self.subscriber_template.pull_async(subscription, max_messages, return_immediately)

    def pull_and_convert(
        self,
        subscription: str,
        max_messages: int,
        return_immediately: bool,
        payload_type: Type
    ) -> List:
        return self.subscriber_template.pull_and_convert(
            subscription, max_messages, return_immediately, payload_type
        )

    def pull_and_convert_async(
        self,
        subscription: str,
        max_messages: int,
        return_immediately: bool,
        payload_type: Type
    ) -> Future:
        return self.subscriber_template.pull_and_convert_async(
            subscription, max_messages, return_immediately, payload_type
        )

    def pull_and_ack(
        self,
        subscription: str,
        max_messages: int,
        return_immediately: bool = False
    ) -> List[PubsubMessage]:
        return self.subscriber_template.pull_and_ack(subscription, max_messages, return_immediately)

    def pull_and_ack_async(
        self,
        subscription: str,
        max_messages: int,
        return_immediately: bool = False
    ) -> Future:
        return self.subscriber_template.pull_and_ack_async(subscription, max_messages, return_immediately)

    def pull_next(self, subscription: str) -> PubsubMessage:
        return self.subscriber_template.pull_next(subscription)

    def pull_next_async(self, subscription: str) -> Future:
        return self.subscriber_template.pull_next_async(subscription)

    def ack(self, handles: Iterable) -> Future:
        return self.subscriber_template.ack(handles)

    def nack(self, handles: Iterable) -> Future:
        return self.subscriber_template.nack(handles)

    def modify_ack_deadline(self, handles: Iterable, ack_deadline_seconds: int) -> Future:
        return self.subscriber_template.modify_ack_deadline(handles, ack_deadline_seconds)


def create_pubsub_template(config: Optional[TemplatesConfig] = None) -> PubSubTemplate:
    """
    Create a template wired to the default client factories.

    Args:
        config: Template configuration. If None, read from the environment.

    Returns:
        Configured PubSubTemplate
    """
    config = config or get_config()
    credentials = load_credentials(config.service_account_json)

    publisher_factory = DefaultPublisherFactory(
        project_id=config.gcp_project_id,
        settings=config.pubsub.publisher,
        credentials=credentials
    )
    subscriber_factory = DefaultSubscriberFactory(
        project_id=config.gcp_project_id,
        settings=config.pubsub.subscriber,
        credentials=credentials
    )

    template = PubSubTemplate(
        publisher_template=PubSubPublisherTemplate(publisher_factory),
        subscriber_template=PubSubSubscriberTemplate(
            subscriber_factory,
            executor_threads=config.pubsub.subscriber.executor_threads
        )
    )
    logger.info(f"PubSubTemplate initialized for project: {config.gcp_project_id}")
    return template
