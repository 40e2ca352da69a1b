"""Cloud Vision template: image and document annotation."""

from .template import (
    EMPTY_RESPONSE_MESSAGE,
    READ_ERROR_MESSAGE,
    CloudVisionTemplate,
    create_vision_template,
    read_resource,
)

__all__ = [
    "EMPTY_RESPONSE_MESSAGE",
    "READ_ERROR_MESSAGE",
    "CloudVisionTemplate",
    "create_vision_template",
    "read_resource",
]
