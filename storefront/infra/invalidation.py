"""
Signaux d'invalidation de cache envoyés aux vues de lecture (/orders, /customers/<id>, ...).
- RecordingInvalidationSink: log + mémoire (dev/tests).
- RedisInvalidationSink: publie chaque chemin sur un canal Redis pub/sub.
Invalider deux fois le même chemin est sans effet supplémentaire (rejouable).
"""
import logging
from abc import ABC, abstractmethod
from typing import List

import redis

logger = logging.getLogger(__name__)


class InvalidationSink(ABC):
    @abstractmethod
    def invalidate(self, path: str) -> None:
        ...


class RecordingInvalidationSink(InvalidationSink):
    def __init__(self) -> None:
        self.paths: List[str] = []

    def invalidate(self, path: str) -> None:
        logger.info("invalidation path=%s", path)
        self.paths.append(path)


class RedisInvalidationSink(InvalidationSink):
    def __init__(self, client: "redis.Redis", channel: str):
        self.client = client
        self.channel = channel

    @classmethod
    def from_url(cls, url: str, channel: str) -> "RedisInvalidationSink":
        return cls(redis.from_url(url), channel)

    def invalidate(self, path: str) -> None:
        # Les erreurs Redis remontent: le handler les transforme en HandlerSideEffectError
        receivers = self.client.publish(self.channel, path)
        logger.info("invalidation path=%s channel=%s receivers=%s", path, self.channel, receivers)
