"""Resolution of short topic and subscription names to resource paths."""

import re
from typing import Optional

TOPIC_PATH_PATTERN = re.compile(r'^projects/[^/]+/topics/[^/]+$')
SUBSCRIPTION_PATH_PATTERN = re.compile(r'^projects/[^/]+/subscriptions/[^/]+$')


def _resolve(name: str, project_id: Optional[str], kind: str, pattern: re.Pattern) -> str:
    if not name:
        raise ValueError(f"The {kind} name can't be empty.")
    if pattern.match(name):
        return name
    if '/' in name:
        raise ValueError(f"Malformed {kind} path: {name}")
    if not project_id:
        raise ValueError(f"A project ID is required to resolve the {kind} '{name}'.")
    return f"projects/{project_id}/{kind}s/{name}"


def to_topic_path(topic: str, project_id: Optional[str] = None) -> str:
    """
    Resolve a topic name to its fully-qualified path.

    ``projects/<project>/topics/<topic>`` is returned unchanged; a short
    name is expanded with ``project_id``.
    """
    return _resolve(topic, project_id, 'topic', TOPIC_PATH_PATTERN)


def to_subscription_path(subscription: str, project_id: Optional[str] = None) -> str:
    """Resolve a subscription name to its fully-qualified path."""
    return _resolve(subscription, project_id, 'subscription', SUBSCRIPTION_PATH_PATTERN)


def to_project_path(project_id: Optional[str]) -> str:
    if not project_id:
        raise ValueError("The project ID can't be empty.")
    return f"projects/{project_id}"
