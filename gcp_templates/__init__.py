"""
GCP Templates

Template-style access to Google Cloud Pub/Sub and Cloud Vision. The
templates convert payloads, forward calls to injected SDK clients and
surface failures as exceptions or failed futures.
"""

__version__ = "1.0.0"

from .exceptions import (
    AnalysisError,
    CloudTemplateError,
    ConversionError,
    EmptyResultError,
    PublishError,
)
from .pubsub import PubSubAdmin, PubSubTemplate, create_pubsub_admin, create_pubsub_template
from .vision import CloudVisionTemplate, create_vision_template

__all__ = [
    "__version__",
    "AnalysisError",
    "CloudTemplateError",
    "ConversionError",
    "EmptyResultError",
    "PublishError",
    "PubSubAdmin",
    "PubSubTemplate",
    "create_pubsub_admin",
    "create_pubsub_template",
    "CloudVisionTemplate",
    "create_vision_template",
]
