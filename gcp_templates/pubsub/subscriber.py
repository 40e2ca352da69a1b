"""
Subscribing half of the Pub/Sub template.

Streaming subscriptions are delegated to the SDK's ``subscribe``; pulls,
acks and deadline changes go through the unary ``pull``,
``acknowledge`` and ``modify_ack_deadline`` calls of the subscriber
client. Asynchronous variants run those blocking calls on an executor.
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

from google.pubsub_v1.types import PubsubMessage, PullRequest

from ..exceptions import ConversionError, EmptyResultError
from .converters import PubSubMessageConverter, SimplePubSubMessageConverter
from .futures import all_of, completed_future, transform
from .messages import (
    AcknowledgeablePubsubMessage,
    BasicAcknowledgeablePubsubMessage,
    ConvertedAcknowledgeablePubsubMessage,
    PulledAcknowledgeablePubsubMessage,
)
from .paths import to_subscription_path

logger = logging.getLogger(__name__)


class PubSubSubscriberTemplate:
    """
    Consumes messages from Cloud Pub/Sub subscriptions.

    Args:
        subscriber_factory: Source of subscriber clients and pull requests
        message_converter: Converter for the ``*_and_convert`` variants
        executor: Executor for asynchronous pulls and acks. When omitted the
            template creates a thread pool of ``executor_threads`` workers
            and shuts it down in ``close()``.
        executor_threads: Size of the owned thread pool
    """

    def __init__(
        self,
        subscriber_factory,
        message_converter: Optional[PubSubMessageConverter] = None,
        executor: Optional[Executor] = None,
        executor_threads: int = 4
    ):
        if subscriber_factory is None:
            raise ValueError("The subscriberFactory can't be null.")
        self.subscriber_factory = subscriber_factory
        self.message_converter = message_converter or SimplePubSubMessageConverter()
        self._executor = executor
        self._owns_executor = executor is None
        self._executor_threads = executor_threads
        self._executor_lock = threading.Lock()

    @property
    def executor(self) -> Executor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._executor_threads,
                    thread_name_prefix="gcp-pubsub-subscriber"
                )
            return self._executor

    def close(self) -> None:
        """
        Shut down the executor if this template created it.

        An injected executor is left running and stays in use.
        """
        if not self._owns_executor:
            return
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Streaming subscriptions
    # ------------------------------------------------------------------

    def subscribe(
        self,
        subscription: str,
        callback: Callable[[BasicAcknowledgeablePubsubMessage], None]
    ):
        """
        Open a streaming subscription.

        ``callback`` runs on the SDK's callback threads, once per message.

        Returns:
            The SDK's ``StreamingPullFuture``; call ``cancel()`` to stop.
        """
        subscription_path = to_subscription_path(subscription, self.subscriber_factory.project_id)
        subscriber = self.subscriber_factory.create_subscriber()

        def _receive(message) -> None:
            callback(BasicAcknowledgeablePubsubMessage(subscription_path, message))

        kwargs = {}
        if self.subscriber_factory.flow_control is not None:
            kwargs['flow_control'] = self.subscriber_factory.flow_control

        streaming_future = subscriber.subscribe(subscription_path, callback=_receive, **kwargs)
        logger.info(f"Subscribed to {subscription_path}")
        return streaming_future

    def subscribe_and_convert(
        self,
        subscription: str,
        callback: Callable[[ConvertedAcknowledgeablePubsubMessage], None],
        payload_type: Type
    ):
        """
        Open a streaming subscription that decodes each payload first.

        A message that cannot be decoded into ``payload_type`` is logged and
        nacked; the callback is not invoked for it and the subscription
        keeps running.
        """
        def _receive(handle: BasicAcknowledgeablePubsubMessage) -> None:
            try:
                payload = self.message_converter.from_pubsub_message(handle.pubsub_message, payload_type)
            except ConversionError as e:
                logger.error(
                    f"Nacking undecodable message {handle.pubsub_message.message_id} "
                    f"from {handle.subscription_path}: {e}"
                )
                handle.nack()
                return
            callback(ConvertedAcknowledgeablePubsubMessage(handle, payload))

        return self.subscribe(subscription, _receive)

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    def _pull(self, request: PullRequest) -> List[PulledAcknowledgeablePubsubMessage]:
        subscriber = self.subscriber_factory.create_subscriber()

        kwargs = {}
        if self.subscriber_factory.pull_timeout:
            kwargs['timeout'] = self.subscriber_factory.pull_timeout

        response = subscriber.pull(request=request, **kwargs)
        handles = [
            PulledAcknowledgeablePubsubMessage(
                request.subscription,
                received.message,
                received.ack_id,
                self
            )
            for received in response.received_messages
        ]
        logger.debug(f"Pulled {len(handles)} messages from {request.subscription}")
        return handles

    def _pull_and_ack(self, request: PullRequest) -> List[PubsubMessage]:
        handles = self._pull(request)
        if handles:
            self._acknowledge(request.subscription, [h.ack_id for h in handles])
        return [h.pubsub_message for h in handles]

    def _pull_next(self, request: PullRequest) -> PubsubMessage:
        messages = self._pull_and_ack(request)
        if not messages:
            raise EmptyResultError(f"No message received from {request.subscription}")
        return messages[0]

    def _convert_all(
        self,
        handles: List[AcknowledgeablePubsubMessage],
        payload_type: Type
    ) -> List[ConvertedAcknowledgeablePubsubMessage]:
        # Any undecodable message fails the whole batch; pulled messages stay
        # un-acked and are redelivered once their deadline passes.
        return [
            ConvertedAcknowledgeablePubsubMessage(
                handle,
                self.message_converter.from_pubsub_message(handle.pubsub_message, payload_type)
            )
            for handle in handles
        ]

    def pull(
        self,
        subscription: str,
        max_messages: int,
        return_immediately: bool = False
    ) -> List[PulledAcknowledgeablePubsubMessage]:
        """
        Pull up to ``max_messages`` messages.

        Blocks up to the factory's pull timeout unless ``return_immediately``
        is set, in which case an empty list comes back when nothing is
        available.

        Raises:
            ValueError: If ``max_messages`` is not positive.
        """
        request = self.subscriber_factory.create_pull_request(subscription, max_messages, return_immediately)
        return self._pull(request)

    def pull_async(
        self,
        subscription: str,
        max_messages: int,
        return_immediately: bool = False
    ) -> Future:
        request = self.subscriber_factory.create_pull_request(subscription, max_messages, return_immediately)
        return self.executor.submit(self._pull, request)

    def pull_and_convert(
        self,
        subscription: str,
        max_messages: int,
        return_immediately: bool,
        payload_type: Type
    ) -> List[ConvertedAcknowledgeablePubsubMessage]:
        """
        Pull and decode every message into ``payload_type``.

        Raises:
            ConversionError: If any pulled message cannot be decoded.
        """
        return self._convert_all(self.pull(subscription, max_messages, return_immediately), payload_type)

    def pull_and_convert_async(
        self,
        subscription: str,
        max_messages: int,
        return_immediately: bool,
        payload_type: Type
    ) -> Future:
        return transform(
            self.pull_async(subscription, max_messages, return_immediately),
            lambda handles: self._convert_all(handles, payload_type)
        )

    def pull_and_ack(
        self,
        subscription: str,
        max_messages: int,
        return_immediately: bool = False
    ) -> List[PubsubMessage]:
        """Pull messages, acknowledge all of them, and return the envelopes."""
        request = self.subscriber_factory.create_pull_request(subscription, max_messages, return_immediately)
        return self._pull_and_ack(request)

    def pull_and_ack_async(
        self,
        subscription: str,
        max_messages: int,
        return_immediately: bool = False
    ) -> Future:
        request = self.subscriber_factory.create_pull_request(subscription, max_messages, return_immediately)
        return self.executor.submit(self._pull_and_ack, request)

    def pull_next(self, subscription: str) -> PubsubMessage:
        """
        Pull a single message, acknowledge it and return it.

        Raises:
            EmptyResultError: If no message arrived within the pull window.
        """
        request = self.subscriber_factory.create_pull_request(subscription, 1, False)
        return self._pull_next(request)

    def pull_next_async(self, subscription: str) -> Future:
        request = self.subscriber_factory.create_pull_request(subscription, 1, False)
        return self.executor.submit(self._pull_next, request)

    # ------------------------------------------------------------------
    # Acknowledgement
    # ------------------------------------------------------------------

    @staticmethod
    def _group_ack_ids(handles: Iterable[Any]) -> Dict[str, List[str]]:
        grouped: Dict[str, List[str]] = {}
        for handle in handles:
            grouped.setdefault(handle.subscription_path, []).append(handle.ack_id)
        return grouped

    def _acknowledge(self, subscription_path: str, ack_ids: List[str]) -> None:
        subscriber = self.subscriber_factory.create_subscriber()
        subscriber.acknowledge(request={"subscription": subscription_path, "ack_ids": ack_ids})
        logger.debug(f"Acked {len(ack_ids)} messages on {subscription_path}")

    def _modify_ack_deadline(self, subscription_path: str, ack_ids: List[str], seconds: int) -> None:
        subscriber = self.subscriber_factory.create_subscriber()
        subscriber.modify_ack_deadline(request={
            "subscription": subscription_path,
            "ack_ids": ack_ids,
            "ack_deadline_seconds": seconds,
        })
        logger.debug(f"Set ack deadline of {len(ack_ids)} messages on {subscription_path} to {seconds}s")

    def ack(self, handles: Iterable[Any]) -> Future:
        """
        Acknowledge handles, one request per subscription.

        Returns:
            Future resolving to None; it fails if any request fails.
        """
        grouped = self._group_ack_ids(handles)
        if not grouped:
            return completed_future(None)

        return all_of(
            self.executor.submit(self._acknowledge, path, ack_ids)
            for path, ack_ids in grouped.items()
        )

    def nack(self, handles: Iterable[Any]) -> Future:
        """Negatively acknowledge handles so Pub/Sub redelivers them promptly."""
        return self.modify_ack_deadline(handles, 0)

    def modify_ack_deadline(self, handles: Iterable[Any], ack_deadline_seconds: int) -> Future:
        """
        Change the ack deadline of handles, one request per subscription.

        Raises:
            ValueError: If ``ack_deadline_seconds`` is negative.
        """
        if ack_deadline_seconds < 0:
            raise ValueError("The ackDeadlineSeconds must not be negative.")

        grouped = self._group_ack_ids(handles)
        if not grouped:
            return completed_future(None)

        return all_of(
            self.executor.submit(self._modify_ack_deadline, path, ack_ids, ack_deadline_seconds)
            for path, ack_ids in grouped.items()
        )
