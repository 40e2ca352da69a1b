from concurrent.futures import Future
from unittest import mock

import pytest
from pydantic import BaseModel

from conftest import StubPublisherFactory, StubSubscriberFactory, pull_response
from gcp_templates.config.settings import TemplatesConfig
from gcp_templates.pubsub.converters import JsonPubSubMessageConverter, SimplePubSubMessageConverter
from gcp_templates.pubsub.factories import DefaultPublisherFactory, DefaultSubscriberFactory
from gcp_templates.pubsub.template import PubSubTemplate, create_pubsub_template


class Shipment(BaseModel):
    sku: str
    count: int


@pytest.fixture
def template(publisher, subscriber, executor):
    return PubSubTemplate(
        StubPublisherFactory(publisher),
        StubSubscriberFactory(subscriber),
        executor=executor
    )


def test_halves_share_one_converter(template):
    assert isinstance(template.message_converter, SimplePubSubMessageConverter)
    assert template.subscriber_template.message_converter is template.publisher_template.message_converter

    converter = JsonPubSubMessageConverter()
    template.message_converter = converter

    assert template.publisher_template.message_converter is converter
    assert template.subscriber_template.message_converter is converter


def test_converter_cannot_be_cleared(template):
    with pytest.raises(ValueError):
        template.message_converter = None


def test_json_publish_and_pull_and_convert(template, publisher, subscriber):
    template.message_converter = JsonPubSubMessageConverter()
    sent = Future()
    sent.set_result("99")
    publisher.publish.return_value = sent

    assert template.publish("shipments", Shipment(sku="X-1", count=2)).result(timeout=5) == "99"
    published_data = publisher.publish.call_args.args[1]

    subscriber.pull.return_value = pull_response(published_data)
    converted, = template.pull_and_convert("shipments-sub", 1, True, Shipment)

    assert converted.payload == Shipment(sku="X-1", count=2)

    converted.ack().result(timeout=5)
    subscriber.acknowledge.assert_called_once_with(request={
        "subscription": "projects/test-project/subscriptions/shipments-sub",
        "ack_ids": ["ack-0"],
    })


def test_factories_are_exposed(template):
    assert template.publisher_factory.project_id == "test-project"
    assert template.subscriber_factory.pull_timeout == 5.0


def test_missing_factories_are_rejected(publisher, subscriber):
    with pytest.raises(ValueError):
        PubSubTemplate(None, StubSubscriberFactory(subscriber))
    with pytest.raises(ValueError):
        PubSubTemplate(StubPublisherFactory(publisher), None)


@mock.patch("gcp_templates.pubsub.template.load_credentials", return_value=None)
def test_create_pubsub_template_uses_default_factories(load_credentials):
    config = TemplatesConfig(gcp_project_id="acme-prod")

    template = create_pubsub_template(config)

    assert isinstance(template.publisher_factory, DefaultPublisherFactory)
    assert isinstance(template.subscriber_factory, DefaultSubscriberFactory)
    assert template.publisher_factory.project_id == "acme-prod"
    assert template.subscriber_factory.flow_control.max_messages == config.pubsub.subscriber.flow_control_max_messages
    load_credentials.assert_called_once_with(None)


@mock.patch("gcp_templates.pubsub.factories.pubsub_v1.PublisherClient")
def test_default_publisher_factory_caches_per_topic(publisher_client):
    factory = DefaultPublisherFactory("acme-prod")

    first = factory.create_publisher("orders")
    again = factory.create_publisher("orders")
    factory.create_publisher("refunds")

    assert first is again
    assert publisher_client.call_count == 2

    factory.shutdown()
    assert first.stop.call_count == 2


@mock.patch("gcp_templates.pubsub.factories.pubsub_v1.SubscriberClient")
def test_default_subscriber_factory_reuses_client(subscriber_client):
    factory = DefaultSubscriberFactory("acme-prod")

    assert factory.create_subscriber() is factory.create_subscriber()
    subscriber_client.assert_called_once_with(credentials=None)

    factory.shutdown()
    subscriber_client.return_value.close.assert_called_once_with()


def test_pull_request_carries_resolved_path():
    factory = StubSubscriberFactory(mock.MagicMock())

    request = factory.create_pull_request("orders-sub", 3, False)

    assert request.subscription == "projects/test-project/subscriptions/orders-sub"
    assert request.max_messages == 3
    assert request.return_immediately is False
