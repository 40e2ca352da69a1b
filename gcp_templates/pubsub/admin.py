"""
Topic and subscription administration for Cloud Pub/Sub.
"""

import logging
from typing import Any, List, Optional

from google.api_core.exceptions import NotFound
from google.cloud import pubsub_v1
from google.pubsub_v1.types import Subscription, Topic

from ..config.credentials import load_credentials
from ..config.settings import TemplatesConfig, get_config
from .paths import to_project_path, to_subscription_path, to_topic_path

logger = logging.getLogger(__name__)

MIN_ACK_DEADLINE_SECONDS = 10
MAX_ACK_DEADLINE_SECONDS = 600


class PubSubAdmin:
    """
    Creates, looks up, lists and deletes topics and subscriptions.

    Args:
        project_id: Project that owns the resources
        publisher_client: Client exposing the topic admin calls
            (``pubsub_v1.PublisherClient``)
        subscriber_client: Client exposing the subscription admin calls
            (``pubsub_v1.SubscriberClient``)
        default_ack_deadline_seconds: Deadline for new subscriptions
    """

    def __init__(
        self,
        project_id: str,
        publisher_client: Any,
        subscriber_client: Any,
        default_ack_deadline_seconds: int = MIN_ACK_DEADLINE_SECONDS
    ):
        if not project_id:
            raise ValueError("The project ID can't be null or empty.")
        _check_ack_deadline(default_ack_deadline_seconds)

        self.project_id = project_id
        self.publisher_client = publisher_client
        self.subscriber_client = subscriber_client
        self.default_ack_deadline_seconds = default_ack_deadline_seconds

    # Topics

    def create_topic(self, topic: str) -> Topic:
        topic_path = to_topic_path(topic, self.project_id)
        created = self.publisher_client.create_topic(request={"name": topic_path})
        logger.info(f"Created topic {topic_path}")
        return created

    def get_topic(self, topic: str) -> Optional[Topic]:
        """Return the topic, or None if it does not exist."""
        topic_path = to_topic_path(topic, self.project_id)
        try:
            return self.publisher_client.get_topic(request={"topic": topic_path})
        except NotFound:
            return None

    def delete_topic(self, topic: str) -> None:
        topic_path = to_topic_path(topic, self.project_id)
        self.publisher_client.delete_topic(request={"topic": topic_path})
        logger.info(f"Deleted topic {topic_path}")

    def list_topics(self) -> List[Topic]:
        return list(self.publisher_client.list_topics(request={"project": to_project_path(self.project_id)}))

    # Subscriptions

    def create_subscription(
        self,
        subscription: str,
        topic: str,
        ack_deadline_seconds: Optional[int] = None,
        push_endpoint: Optional[str] = None
    ) -> Subscription:
        """
        Create a pull subscription, or a push subscription if ``push_endpoint`` is set.

        Raises:
            ValueError: If the ack deadline is outside 10-600 seconds.
        """
        deadline = self.default_ack_deadline_seconds if ack_deadline_seconds is None else ack_deadline_seconds
        _check_ack_deadline(deadline)

        request = {
            "name": to_subscription_path(subscription, self.project_id),
            "topic": to_topic_path(topic, self.project_id),
            "ack_deadline_seconds": deadline,
        }
        if push_endpoint:
            request["push_config"] = {"push_endpoint": push_endpoint}

        created = self.subscriber_client.create_subscription(request=request)
        logger.info(f"Created subscription {request['name']} on {request['topic']}")
        return created

    def get_subscription(self, subscription: str) -> Optional[Subscription]:
        """Return the subscription, or None if it does not exist."""
        subscription_path = to_subscription_path(subscription, self.project_id)
        try:
            return self.subscriber_client.get_subscription(request={"subscription": subscription_path})
        except NotFound:
            return None

    def delete_subscription(self, subscription: str) -> None:
        subscription_path = to_subscription_path(subscription, self.project_id)
        self.subscriber_client.delete_subscription(request={"subscription": subscription_path})
        logger.info(f"Deleted subscription {subscription_path}")

    def list_subscriptions(self) -> List[Subscription]:
        return list(
            self.subscriber_client.list_subscriptions(request={"project": to_project_path(self.project_id)})
        )


def _check_ack_deadline(seconds: int) -> None:
    if not MIN_ACK_DEADLINE_SECONDS <= seconds <= MAX_ACK_DEADLINE_SECONDS:
        raise ValueError(
            f"The acknowledgement deadline must be between {MIN_ACK_DEADLINE_SECONDS} "
            f"and {MAX_ACK_DEADLINE_SECONDS} seconds."
        )


def create_pubsub_admin(config: Optional[TemplatesConfig] = None) -> PubSubAdmin:
    """
    Create an admin wired to fresh publisher and subscriber clients.

    Args:
        config: Template configuration. If None, read from the environment.
    """
    config = config or get_config()
    credentials = load_credentials(config.service_account_json)

    return PubSubAdmin(
        project_id=config.gcp_project_id,
        publisher_client=pubsub_v1.PublisherClient(credentials=credentials),
        subscriber_client=pubsub_v1.SubscriberClient(credentials=credentials),
        default_ack_deadline_seconds=config.pubsub.subscriber.default_ack_deadline_seconds
    )
