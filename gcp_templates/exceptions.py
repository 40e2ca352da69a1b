"""Exceptions raised by the Pub/Sub and Vision templates."""

from typing import Optional

from google.pubsub_v1.types import PubsubMessage


class CloudTemplateError(Exception):
    """Base class for errors raised by the templates."""


class ConversionError(CloudTemplateError):
    """Raised when a payload cannot be converted to or from a Pub/Sub message."""


class PublishError(CloudTemplateError):
    """
    Raised (through the returned future) when a publish request fails.

    The SDK error that caused the failure is chained as ``__cause__``.
    """

    def __init__(self, message: str, failed_message: Optional[PubsubMessage] = None):
        super().__init__(message)
        self.failed_message = failed_message


class EmptyResultError(CloudTemplateError):
    """Raised when a single-message pull returns nothing."""


class AnalysisError(CloudTemplateError):
    """Raised when Cloud Vision cannot produce a usable result."""
