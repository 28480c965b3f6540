from typing import Any

import redis

from faultline.transports.base import Transport


class RedisTransport(Transport):
    """Appends each event to a Redis stream."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        stream_key: str = "faultline_events",
        max_stream_length: int = 10000,
        json_library=None,
        **connection_kwargs: Any,
    ):
        super().__init__(json_library=json_library)
        self.redis_url = redis_url
        self.stream_key = stream_key
        self.max_stream_length = max_stream_length
        self.connection_kwargs = connection_kwargs
        self._connection_pool = None
        self._redis = None

    def start(self) -> None:
        if not self._connection_pool:
            self._connection_pool = redis.ConnectionPool.from_url(
                self.redis_url, **self.connection_kwargs
            )
            self._redis = redis.Redis(connection_pool=self._connection_pool)
        super().start()

    def stop(self) -> None:
        super().stop()
        if self._connection_pool:
            self._connection_pool.disconnect()
            self._connection_pool = None
            self._redis = None

    def _write_batch(self, messages: list[str]) -> None:
        pipe = self._redis.pipeline()
        for message in messages:
            pipe.xadd(
                name=self.stream_key,
                fields={"message": message},
                maxlen=self.max_stream_length,
                approximate=True,
            )
        pipe.execute()
