from concurrent.futures import ThreadPoolExecutor
from unittest import mock

import pytest
from google.pubsub_v1.types import PubsubMessage, PullResponse, ReceivedMessage

from gcp_templates.pubsub.factories import PublisherFactory, SubscriberFactory

PROJECT = "test-project"


class StubPublisherFactory(PublisherFactory):
    """Hands out the same mock publisher for every topic."""

    def __init__(self, publisher):
        self.project_id = PROJECT
        self.publisher = publisher
        self.topics = []

    def create_publisher(self, topic):
        self.topics.append(topic)
        return self.publisher


class StubSubscriberFactory(SubscriberFactory):
    """Hands out a single mock subscriber."""

    def __init__(self, subscriber, flow_control=None):
        self.project_id = PROJECT
        self.pull_timeout = 5.0
        self.flow_control = flow_control
        self.subscriber = subscriber

    def create_subscriber(self):
        return self.subscriber


def pull_response(*payloads):
    """Build a PullResponse with ack ids ack-0, ack-1, ..."""
    return PullResponse(received_messages=[
        ReceivedMessage(
            ack_id=f"ack-{i}",
            message=PubsubMessage(data=payload, message_id=f"msg-{i}"),
        )
        for i, payload in enumerate(payloads)
    ])


@pytest.fixture
def publisher():
    return mock.MagicMock(name="PublisherClient")


@pytest.fixture
def subscriber():
    return mock.MagicMock(name="SubscriberClient")


@pytest.fixture
def executor():
    workers = ThreadPoolExecutor(max_workers=2)
    yield workers
    workers.shutdown(wait=True)
