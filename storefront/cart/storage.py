"""
Adaptateurs de stockage du panier: get(key) -> bytes | None, set(key, bytes), delete(key).
- MemoryStorage: dict du process (tests, dev mono-process).
- RedisStorage: un espace de clés par session navigateur; dernier écrivain gagnant, pas de verrou.
"""
from abc import ABC, abstractmethod
from typing import Dict, Optional

import redis


class CartStorage(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        ...

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class MemoryStorage(CartStorage):
    def __init__(self) -> None:
        self._data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class RedisStorage(CartStorage):
    """
    Stockage Redis; namespace = préfixe commun des clés panier (la clé porte l'id de session).
    Les erreurs Redis remontent à l'appelant (pas d'écriture silencieusement perdue).
    """

    def __init__(self, client: "redis.Redis", namespace: str = "", ttl_seconds: Optional[int] = None):
        self.client = client
        self.namespace = namespace
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisStorage":
        return cls(redis.from_url(url), **kwargs)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def get(self, key: str) -> Optional[bytes]:
        value = self.client.get(self._key(key))
        if value is None:
            return None
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def set(self, key: str, value: bytes) -> None:
        self.client.set(self._key(key), value, ex=self.ttl_seconds)

    def delete(self, key: str) -> None:
        self.client.delete(self._key(key))
