"""Cloud Pub/Sub templates: publishing, subscribing, pulling and administration."""

from .admin import PubSubAdmin, create_pubsub_admin
from .converters import (
    ORDERING_KEY_HEADER,
    RESERVED_ATTRIBUTE_NAMES,
    JsonPubSubMessageConverter,
    PubSubMessageConverter,
    SimplePubSubMessageConverter,
)
from .factories import (
    DefaultPublisherFactory,
    DefaultSubscriberFactory,
    PublisherFactory,
    SubscriberFactory,
)
from .messages import (
    AcknowledgeablePubsubMessage,
    BasicAcknowledgeablePubsubMessage,
    ConvertedAcknowledgeablePubsubMessage,
    PulledAcknowledgeablePubsubMessage,
)
from .paths import to_subscription_path, to_topic_path
from .publisher import PubSubPublisherTemplate
from .subscriber import PubSubSubscriberTemplate
from .template import PubSubTemplate, create_pubsub_template

__all__ = [
    "PubSubAdmin",
    "create_pubsub_admin",
    "ORDERING_KEY_HEADER",
    "RESERVED_ATTRIBUTE_NAMES",
    "JsonPubSubMessageConverter",
    "PubSubMessageConverter",
    "SimplePubSubMessageConverter",
    "DefaultPublisherFactory",
    "DefaultSubscriberFactory",
    "PublisherFactory",
    "SubscriberFactory",
    "AcknowledgeablePubsubMessage",
    "BasicAcknowledgeablePubsubMessage",
    "ConvertedAcknowledgeablePubsubMessage",
    "PulledAcknowledgeablePubsubMessage",
    "to_subscription_path",
    "to_topic_path",
    "PubSubPublisherTemplate",
    "PubSubSubscriberTemplate",
    "PubSubTemplate",
    "create_pubsub_template",
]
