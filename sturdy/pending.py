from concurrent.futures import Future
from typing import Dict, Optional


class PendingRequests:
    """
    Registry of in-flight GET calls, used to de-duplicate identical requests.

    Each entry holds the future that the owning call resolves with its final
    envelope. Callers that find an entry wait on that future instead of issuing
    their own request. The owning call removes its entry once it settles, so the
    registry never remembers outcomes.

    Not synchronised. The client only touches it while holding its own lock.
    """

    def __init__(self) -> None:
        self.__pending: Dict[str, Future] = {}

    def __len__(self) -> int:
        return len(self.__pending)

    def has(self, key: str) -> bool:
        return key in self.__pending

    def get(self, key: str) -> Optional[Future]:
        return self.__pending.get(key)

    def register(self, key: str, handle: Future) -> None:
        if key in self.__pending:
            raise KeyError('A request is already pending for {}'.format(key))
        self.__pending[key] = handle

    def resolve(self, key: str) -> None:
        self.__pending.pop(key, None)
