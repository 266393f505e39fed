from abc import ABC, abstractmethod
import copy
from dataclasses import dataclass
import logging
import time
from typing import Any, Callable, Dict, Optional


logger = logging.getLogger(__name__)


class Cache(ABC):
    """
    An abstraction of a response cache.

    A response cache has a relatively narrow scope: to remember a payload such that it can be recalled later under the
    same key. Entries expire on their own, but expiry is only ever noticed when an entry is read. There is no
    background sweep.

    The client calls its cache while holding its own lock. Implementations must not call back into the client.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a cached payload.

        @param key
          The key the payload was stored under.
        @return
          The payload, or `None` if there is no entry or the entry has expired.
        """

    @abstractmethod
    def set(self, key: str, value: Any, ttl: float) -> None:
        """
        Store a payload, replacing any existing entry for `key`.

        @param key
          The key to store the payload under.
        @param value
          The payload.
        @param ttl
          How long the entry stays valid, in milliseconds.
        """

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete an entry.

        @return
          Whether there was an entry to delete.
        """

    @abstractmethod
    def clear(self) -> None:
        """
        Delete all entries.
        """

    def close(self):
        """
        Close any resources associated with the cache.
        """


@dataclass
class CacheEntry:
    value: Any
    expiry: float
    """
    The clock reading after which the entry is stale.
    """


class MemoryCache(Cache):
    """
    A process-local cache. Values are copied on the way in and on the way out, so entries are owned by the cache
    and nothing else holds on to them.

    Not synchronised. The client only touches it while holding its own lock.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """
        @param clock
          Returns the current time in seconds. Injectable so that tests can move time forward.
        """
        self.__clock = clock
        self.__entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self.__entries)

    def get(self, key: str) -> Optional[Any]:
        entry = self.__entries.get(key)
        if entry is None:
            return None

        if self.__clock() > entry.expiry:
            logger.debug('Cache entry expired. Evicting it.')
            del self.__entries[key]
            return None

        return copy.deepcopy(entry.value)

    def set(self, key: str, value: Any, ttl: float) -> None:
        self.__entries[key] = CacheEntry(value=copy.deepcopy(value), expiry=self.__clock() + ttl / 1000.0)

    def delete(self, key: str) -> bool:
        return self.__entries.pop(key, None) is not None

    def clear(self) -> None:
        self.__entries.clear()
