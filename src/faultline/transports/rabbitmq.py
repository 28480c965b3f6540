import pika

from faultline.transports.base import Transport


class RabbitMQTransport(Transport):
    """Publishes each event to a RabbitMQ queue."""

    def __init__(
        self,
        rabbitmq_url: str = "amqp://localhost:5672",
        queue: str = "faultline_events",
        exchange: str = "",
        json_library=None,
    ):
        super().__init__(json_library=json_library)
        self.rabbitmq_url = rabbitmq_url
        self.queue = queue
        self.exchange = exchange
        self._connection = None
        self._channel = None

    def start(self) -> None:
        if not self._connection or self._connection.is_closed:
            params = pika.URLParameters(self.rabbitmq_url)
            self._connection = pika.BlockingConnection(params)
            self._channel = self._connection.channel()
            self._channel.queue_declare(queue=self.queue, durable=True)
        super().start()

    def stop(self) -> None:
        super().stop()
        if self._connection and not self._connection.is_closed:
            self._connection.close()
        self._connection = None
        self._channel = None

    def _write_batch(self, messages: list[str]) -> None:
        # A dropped connection fails the attempt; reconnect on the retry.
        if not self._connection or self._connection.is_closed:
            self.is_running = False
            self.start()

        for message in messages:
            self._channel.basic_publish(
                exchange=self.exchange, routing_key=self.queue, body=message.encode()
            )
