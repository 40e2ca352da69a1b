"""
Publisher and subscriber client factories.

The templates never construct SDK clients themselves; they ask a factory.
The default factories build ``google.cloud.pubsub_v1`` clients from
configuration, and tests substitute their own factories.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from google.cloud import pubsub_v1

from ..config.settings import PublisherSettings, SubscriberSettings
from .paths import to_subscription_path

logger = logging.getLogger(__name__)


class PublisherFactory(ABC):
    """Supplies ready-to-use publisher clients."""

    project_id: Optional[str] = None

    @abstractmethod
    def create_publisher(self, topic: str) -> Any:
        """
        Return a client able to publish to ``topic``.

        The client must expose ``publish(topic_path, data, **kwargs)``
        returning a future that resolves to the message id.
        """


class SubscriberFactory(ABC):
    """Supplies subscriber clients and pull requests."""

    project_id: Optional[str] = None
    pull_timeout: Optional[float] = None
    flow_control: Optional[pubsub_v1.types.FlowControl] = None

    @abstractmethod
    def create_subscriber(self) -> Any:
        """
        Return a client exposing ``subscribe``, ``pull``, ``acknowledge``
        and ``modify_ack_deadline``.
        """

    def create_pull_request(
        self,
        subscription: str,
        max_messages: int,
        return_immediately: bool
    ) -> pubsub_v1.types.PullRequest:
        """
        Build a pull request for ``subscription``.

        Raises:
            ValueError: If ``max_messages`` is not positive or the name is invalid.
        """
        if max_messages is None or max_messages <= 0:
            raise ValueError("The maxMessages must be greater than 0.")

        return pubsub_v1.types.PullRequest(
            subscription=to_subscription_path(subscription, self.project_id),
            max_messages=max_messages,
            return_immediately=bool(return_immediately),
        )


class DefaultPublisherFactory(PublisherFactory):
    """
    Creates one ``PublisherClient`` per topic and caches it.

    Args:
        project_id: Project used to resolve short topic names
        settings: Batching and ordering settings
        credentials: Optional credentials; None uses ADC
    """

    def __init__(
        self,
        project_id: Optional[str],
        settings: Optional[PublisherSettings] = None,
        credentials: Any = None
    ):
        self.project_id = project_id
        self.settings = settings or PublisherSettings()
        self.credentials = credentials
        self._publishers: Dict[str, pubsub_v1.PublisherClient] = {}
        self._lock = threading.Lock()

    def create_publisher(self, topic: str) -> pubsub_v1.PublisherClient:
        with self._lock:
            publisher = self._publishers.get(topic)
            if publisher is None:
                publisher = pubsub_v1.PublisherClient(
                    batch_settings=pubsub_v1.types.BatchSettings(
                        max_messages=self.settings.batch_max_messages,
                        max_bytes=self.settings.batch_max_bytes,
                        max_latency=self.settings.batch_max_latency,
                    ),
                    publisher_options=pubsub_v1.types.PublisherOptions(
                        enable_message_ordering=self.settings.enable_message_ordering,
                    ),
                    credentials=self.credentials,
                )
                self._publishers[topic] = publisher
                logger.info(f"Created publisher client for topic '{topic}'")
            return publisher

    def shutdown(self) -> None:
        """Flush and stop every cached publisher."""
        with self._lock:
            publishers = list(self._publishers.items())
            self._publishers.clear()
        for topic, publisher in publishers:
            publisher.stop()
            logger.info(f"Stopped publisher client for topic '{topic}'")


class DefaultSubscriberFactory(SubscriberFactory):
    """
    Creates a single cached ``SubscriberClient``.

    Args:
        project_id: Project used to resolve short subscription names
        settings: Flow control and pull settings
        credentials: Optional credentials; None uses ADC
    """

    def __init__(
        self,
        project_id: Optional[str],
        settings: Optional[SubscriberSettings] = None,
        credentials: Any = None
    ):
        self.project_id = project_id
        self.settings = settings or SubscriberSettings()
        self.credentials = credentials
        self.pull_timeout = self.settings.pull_timeout
        self.flow_control = pubsub_v1.types.FlowControl(
            max_messages=self.settings.flow_control_max_messages
        )
        self._subscriber: Optional[pubsub_v1.SubscriberClient] = None
        self._lock = threading.Lock()

    def create_subscriber(self) -> pubsub_v1.SubscriberClient:
        with self._lock:
            if self._subscriber is None:
                self._subscriber = pubsub_v1.SubscriberClient(credentials=self.credentials)
                logger.info(f"Created subscriber client for project '{self.project_id}'")
            return self._subscriber

    def shutdown(self) -> None:
        with self._lock:
            subscriber, self._subscriber = self._subscriber, None
        if subscriber is not None:
            subscriber.close()
            logger.info("Closed subscriber client")
