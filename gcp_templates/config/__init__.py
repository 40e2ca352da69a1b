"""Configuration management for the Pub/Sub and Vision templates."""

from .settings import (
    TemplatesConfig,
    PubSubConfig,
    PublisherSettings,
    SubscriberSettings,
    VisionConfig,
    get_config,
    get_secret,
    load_config_file,
)
from .credentials import load_credentials

__all__ = [
    "load_credentials",
    "TemplatesConfig",
    "PubSubConfig",
    "PublisherSettings",
    "SubscriberSettings",
    "VisionConfig",
    "get_config",
    "get_secret",
    "load_config_file",
]
