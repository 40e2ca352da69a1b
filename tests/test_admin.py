from unittest import mock

import pytest
from google.api_core.exceptions import NotFound
from google.pubsub_v1.types import Subscription, Topic

from gcp_templates.config.settings import TemplatesConfig
from gcp_templates.pubsub.admin import PubSubAdmin, create_pubsub_admin


@pytest.fixture
def admin(publisher, subscriber):
    return PubSubAdmin("test-project", publisher, subscriber)


def test_create_topic(admin, publisher):
    publisher.create_topic.return_value = Topic(name="projects/test-project/topics/orders")

    topic = admin.create_topic("orders")

    assert topic.name == "projects/test-project/topics/orders"
    publisher.create_topic.assert_called_once_with(request={"name": "projects/test-project/topics/orders"})


def test_get_missing_topic_returns_none(admin, publisher):
    publisher.get_topic.side_effect = NotFound("no such topic")

    assert admin.get_topic("orders") is None


def test_delete_and_list_topics(admin, publisher):
    publisher.list_topics.return_value = iter([Topic(name="projects/test-project/topics/a")])

    admin.delete_topic("projects/test-project/topics/a")
    topics = admin.list_topics()

    publisher.delete_topic.assert_called_once_with(request={"topic": "projects/test-project/topics/a"})
    publisher.list_topics.assert_called_once_with(request={"project": "projects/test-project"})
    assert [t.name for t in topics] == ["projects/test-project/topics/a"]


def test_create_pull_subscription_with_default_deadline(admin, subscriber):
    subscriber.create_subscription.return_value = Subscription(name="projects/test-project/subscriptions/orders-sub")

    admin.create_subscription("orders-sub", "orders")

    subscriber.create_subscription.assert_called_once_with(request={
        "name": "projects/test-project/subscriptions/orders-sub",
        "topic": "projects/test-project/topics/orders",
        "ack_deadline_seconds": 10,
    })


def test_create_push_subscription(admin, subscriber):
    admin.create_subscription("orders-push", "orders", ack_deadline_seconds=60, push_endpoint="https://example.com/push")

    request = subscriber.create_subscription.call_args.kwargs["request"]
    assert request["ack_deadline_seconds"] == 60
    assert request["push_config"] == {"push_endpoint": "https://example.com/push"}


@pytest.mark.parametrize("deadline", [9, 601])
def test_ack_deadline_out_of_range(admin, subscriber, deadline):
    with pytest.raises(ValueError):
        admin.create_subscription("orders-sub", "orders", ack_deadline_seconds=deadline)
    subscriber.create_subscription.assert_not_called()


def test_get_delete_list_subscriptions(admin, subscriber):
    subscriber.get_subscription.side_effect = NotFound("gone")
    subscriber.list_subscriptions.return_value = []

    assert admin.get_subscription("orders-sub") is None
    admin.delete_subscription("orders-sub")
    assert admin.list_subscriptions() == []

    subscriber.delete_subscription.assert_called_once_with(
        request={"subscription": "projects/test-project/subscriptions/orders-sub"}
    )
    subscriber.list_subscriptions.assert_called_once_with(request={"project": "projects/test-project"})


def test_project_is_required(publisher, subscriber):
    with pytest.raises(ValueError):
        PubSubAdmin("", publisher, subscriber)


def test_default_deadline_is_validated(publisher, subscriber):
    with pytest.raises(ValueError):
        PubSubAdmin("test-project", publisher, subscriber, default_ack_deadline_seconds=5)


@mock.patch("gcp_templates.pubsub.admin.pubsub_v1.SubscriberClient")
@mock.patch("gcp_templates.pubsub.admin.pubsub_v1.PublisherClient")
def test_create_pubsub_admin(publisher_client, subscriber_client):
    config = TemplatesConfig(gcp_project_id="acme-prod")
    config.pubsub.subscriber.default_ack_deadline_seconds = 30

    admin = create_pubsub_admin(config)

    assert admin.project_id == "acme-prod"
    assert admin.default_ack_deadline_seconds == 30
    assert admin.publisher_client is publisher_client.return_value
    assert admin.subscriber_client is subscriber_client.return_value
