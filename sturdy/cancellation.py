"""
Cancellation primitives.

A `CancellationToken` is owned by the caller and may be cancelled from any
thread. An `AttemptScope` races the sources that can end a single network
attempt and records which one fired first.
"""

from enum import Enum
import logging
import threading
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)


class CancellationToken:
    def __init__(self) -> None:
        self.__event = threading.Event()
        self.__lock = threading.Lock()
        self.__callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self.__event.is_set()

    def cancel(self) -> None:
        """
        Cancel the token. Registered callbacks run once, on the cancelling thread.
        """
        with self.__lock:
            if self.__event.is_set():
                return
            self.__event.set()
            callbacks, self.__callbacks = self.__callbacks, []

        for callback in callbacks:
            callback()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the token is cancelled or `timeout` seconds pass.

        @return
          `True` if the token was cancelled.
        """
        return self.__event.wait(timeout)

    def add_callback(self, callback: Callable[[], None]) -> None:
        with self.__lock:
            if not self.__event.is_set():
                self.__callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self.__lock:
            try:
                self.__callbacks.remove(callback)
            except ValueError:
                pass


class Source(Enum):
    COMPLETED = 'completed'
    TIMEOUT = 'timeout'
    CANCELLED = 'cancelled'


class AttemptScope:
    """
    The race between everything that can end one attempt.

    Entering the scope hooks the caller's token. The timeout is not counted from
    there but from `arm()`, which the worker calls once it actually starts the
    attempt, so time spent queued for a worker is never reported as a timeout.
    Whichever source fires first is the `winner`; later sources are ignored.
    Leaving the scope stops the timer and unhooks the token, no matter how the
    scope is left.
    """

    def __init__(self, timeout: float, token: Optional[CancellationToken] = None) -> None:
        self.__token = token
        self.__lock = threading.Lock()
        self.__fired = threading.Event()
        self.__winner: Optional[Source] = None
        self.__closed = False
        self.__started = False
        self.__timer = threading.Timer(timeout / 1000.0, self.fire, args=(Source.TIMEOUT,))
        self.__timer.daemon = True

    @property
    def winner(self) -> Optional[Source]:
        return self.__winner

    @property
    def armed(self) -> bool:
        """
        Whether the timeout timer is currently running.
        """
        return self.__timer.is_alive()

    def arm(self) -> None:
        """
        Start counting the timeout. Does nothing once the scope is settled or left.
        """
        with self.__lock:
            if self.__closed or self.__started or self.__winner is not None:
                return
            self.__started = True
            self.__timer.start()

    def fire(self, source: Source) -> None:
        with self.__lock:
            if self.__winner is not None:
                return
            self.__winner = source
        logger.debug('Attempt scope settled by {}'.format(source.value))
        self.__fired.set()

    def _on_cancel(self) -> None:
        self.fire(Source.CANCELLED)

    def wait(self) -> Source:
        self.__fired.wait()
        return self.__winner

    def __enter__(self) -> 'AttemptScope':
        if self.__token is not None:
            self.__token.add_callback(self._on_cancel)
        return self

    def __exit__(self, *exc_info) -> None:
        with self.__lock:
            self.__closed = True
            started = self.__started
        self.__timer.cancel()
        if started:
            self.__timer.join()
        if self.__token is not None:
            self.__token.remove_callback(self._on_cancel)
