"""AMQP publishers and consumers."""

from __future__ import annotations

from typing import Any, Callable, Iterator, Mapping

import pika

from wavecommon.abstractions import Closable

JSON = "application/json"

EXCHANGE_KEY = "mail_service_exchange"
EXCHANGE_DIRECT = "direct"

CONFIRM_USER_EMAIL_KEY = "mail_service_confirm_user_email"
SUCCESS_CONFIRM_USER_EMAIL_KEY = "mail_service_success_confirm_user_email"
CONFIRM_USER_EMAIL_QUEUE_KEY = "mail_service_confirm_user_email_queue"
SUCCESS_CONFIRM_USER_EMAIL_QUEUE_KEY = "mail_service_success_confirm_user_email_queue"

Option = Callable[[Any], None]


def _declare_exchange(channel: Any, name, kind, durable, auto_delete, args) -> None:
    channel.exchange_declare(
        exchange=name,
        exchange_type=kind,
        durable=durable,
        auto_delete=auto_delete,
        internal=False,
        arguments=args,
    )


def _declare_queue(channel: Any, name, durable, auto_delete, exclusive, args) -> None:
    channel.queue_declare(
        queue=name,
        durable=durable,
        exclusive=exclusive,
        auto_delete=auto_delete,
        arguments=args,
    )


def _bind_queue(channel: Any, queue_name, routing_key, exchange, args) -> None:
    channel.queue_bind(
        queue=queue_name, exchange=exchange, routing_key=routing_key, arguments=args
    )


def with_exchange(
    name: str, kind: str, durable: bool, auto_delete: bool, args: Mapping | None = None
) -> Option:
    """Declare an exchange when the channel opens."""
    return lambda channel: _declare_exchange(channel, name, kind, durable, auto_delete, args)


def with_queue(
    name: str, durable: bool, auto_delete: bool, exclusive: bool, args: Mapping | None = None
) -> Option:
    """Declare a queue when the channel opens."""
    return lambda channel: _declare_queue(channel, name, durable, auto_delete, exclusive, args)


def with_queue_and_bind(
    queue_name: str,
    routing_key: str,
    exchange: str,
    durable: bool,
    auto_delete: bool,
    args: Mapping | None = None,
) -> Option:
    """Declare a queue and bind it to an exchange when the channel opens."""

    def apply(channel: Any) -> None:
        _declare_queue(channel, queue_name, durable, auto_delete, False, args)
        _bind_queue(channel, queue_name, routing_key, exchange, args)

    return apply


def _open(
    url: str, options: tuple[Option, ...], dial_error: str | None, channel_error: str | None
) -> tuple[Any, Any]:
    try:
        connection = pika.BlockingConnection(pika.URLParameters(url))
    except Exception as exc:
        if dial_error is None:
            raise
        raise ConnectionError(f"{dial_error}: {exc}") from exc
    try:
        channel = connection.channel()
    except Exception as exc:
        if channel_error is None:
            raise
        raise ConnectionError(f"{channel_error}: {exc}") from exc
    for option in options:
        option(channel)
    return connection, channel


def _checked_exchange_declare(channel: Any, name, kind, durable, auto_delete, args) -> None:
    try:
        _declare_exchange(channel, name, kind, durable, auto_delete, args)
    except Exception as exc:
        raise RuntimeError(f"exchangeDeclare: {exc}") from exc


def _checked_queue_declare(channel: Any, name, durable, auto_delete, exclusive, args) -> None:
    try:
        _declare_queue(channel, name, durable, auto_delete, exclusive, args)
    except Exception as exc:
        raise RuntimeError(f"queueDeclare error: {exc}") from exc


def _checked_queue_declare_and_bind(
    channel: Any, queue_name, routing_key, exchange, durable, auto_delete, args
) -> None:
    _checked_queue_declare(channel, queue_name, durable, auto_delete, False, args)
    try:
        _bind_queue(channel, queue_name, routing_key, exchange, args)
    except Exception as exc:
        raise RuntimeError(f"queueDeclareAndBind error: {exc}") from exc


class _Managed(Closable):
    def __enter__(self):
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Consumer(_Managed):
    """Receives messages from queues."""

    def __init__(self, url: str, content_type: str, *args: Option) -> None:
        self._connection, self._channel = _open(
            url, args, "create consumer clients error", "create consumer channel error"
        )
        self.content_type = content_type

    def exchange_declare(
        self, name: str, kind: str, durable: bool, auto_delete: bool, args: Mapping | None = None
    ) -> None:
        _checked_exchange_declare(self._channel, name, kind, durable, auto_delete, args)

    def queue_declare(
        self,
        name: str,
        durable: bool,
        auto_delete: bool,
        exclusive: bool,
        args: Mapping | None = None,
    ) -> None:
        _checked_queue_declare(self._channel, name, durable, auto_delete, exclusive, args)

    def queue_declare_and_bind(
        self,
        queue_name: str,
        routing_key: str,
        exchange: str,
        durable: bool,
        auto_delete: bool,
        args: Mapping | None = None,
    ) -> None:
        _checked_queue_declare_and_bind(
            self._channel, queue_name, routing_key, exchange, durable, auto_delete, args
        )

    def consume(self, queue: str) -> Iterator[tuple[Any, Any, bytes]]:
        """Yield ``(method, properties, body)`` for each delivery; acks automatically."""
        try:
            return self._channel.consume(queue, auto_ack=True, exclusive=False)
        except Exception as exc:
            raise RuntimeError(f"consume error: {exc}") from exc

    def close(self) -> None:
        """Close the connection and its channel."""
        self._connection.close()


class Publisher(_Managed):
    """Sends messages to exchanges."""

    def __init__(self, url: str, content_type: str, *args: Option) -> None:
        self._connection, self._channel = _open(url, args, None, None)
        self.content_type = content_type

    def exchange_declare(
        self, name: str, kind: str, durable: bool, auto_delete: bool, args: Mapping | None = None
    ) -> None:
        _checked_exchange_declare(self._channel, name, kind, durable, auto_delete, args)

    def queue_declare(
        self,
        name: str,
        durable: bool,
        auto_delete: bool,
        exclusive: bool,
        args: Mapping | None = None,
    ) -> None:
        _checked_queue_declare(self._channel, name, durable, auto_delete, exclusive, args)

    def queue_declare_and_bind(
        self,
        queue_name: str,
        routing_key: str,
        exchange: str,
        durable: bool,
        auto_delete: bool,
        args: Mapping | None = None,
    ) -> None:
        _checked_queue_declare_and_bind(
            self._channel, queue_name, routing_key, exchange, durable, auto_delete, args
        )

    def publish(self, exchange: str, routing_key: str, data: bytes) -> None:
        """Publish ``data`` with the publisher's content type."""
        self._channel.basic_publish(
            exchange=exchange,
            routing_key=routing_key,
            body=bytes(data),
            properties=pika.BasicProperties(content_type=self.content_type),
            mandatory=False,
        )

    def close(self) -> None:
        """Close the connection and its channel."""
        self._connection.close()