from dataclasses import dataclass, field
from io import BytesIO
from mockito import mock, when
import json
import logging
import threading
from typing import Any, List, Mapping, Optional, Union

import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict

from sturdy.metrics import MetricsCollector


BASE_URL = 'https://api.example.com'


@dataclass
class Reply:
    status: int
    body: Any = None
    reason: str = 'OK'
    headers: Mapping[str, str] = field(default_factory=lambda: {'Content-Type': 'application/json'})
    raw: Optional[bytes] = None
    """
    Sent verbatim instead of the JSON encoding of `body`.
    """


class StubAdapter(HTTPAdapter):
    """
    Answers requests from a script of replies instead of the network.

    Replies are used in order. The last one is repeated once the script runs out.
    An exception in the script is raised from `send()` instead. Clear `release`
    to hold requests in flight until it is set again.
    """

    def __init__(self, *replies: Union[Reply, Exception]) -> None:
        super().__init__()
        self.__replies = list(replies)
        self.__lock = threading.Lock()
        self.requests: List[requests.PreparedRequest] = []
        self.entered = threading.Event()
        self.release = threading.Event()
        self.release.set()

    @property
    def call_count(self) -> int:
        with self.__lock:
            return len(self.requests)

    def send(self, request: requests.PreparedRequest, **kw) -> requests.Response:
        with self.__lock:
            self.requests.append(request)
            reply = self.__replies.pop(0) if len(self.__replies) > 1 else self.__replies[0]
        self.entered.set()
        self.release.wait()

        if isinstance(reply, Exception):
            raise reply

        if reply.raw is not None:
            content = reply.raw
        elif reply.body is not None:
            content = json.dumps(reply.body).encode('utf-8')
        else:
            content = b''

        response = requests.Response()
        response.status_code = reply.status
        response.reason = reply.reason
        response.headers = CaseInsensitiveDict(reply.headers)
        response.raw = BytesIO(content)
        response.url = request.url
        response.request = request
        response.connection = self
        return response


def stub_session(adapter: StubAdapter) -> requests.Session:
    session = requests.Session()
    session.mount('https://', adapter)
    return session


def no_sleep(seconds, token):
    pass


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: List[float] = []

    def __call__(self, seconds, token) -> None:
        self.delays.append(seconds)


class MessageSignal(logging.Handler):
    """
    Sets `seen` once a log message starting with `prefix` is emitted, from any thread.
    """

    def __init__(self, prefix: str) -> None:
        super().__init__(logging.DEBUG)
        self.prefix = prefix
        self.seen = threading.Event()

    def emit(self, record: logging.LogRecord) -> None:
        if record.getMessage().startswith(self.prefix):
            self.seen.set()


def metrics_mock() -> MetricsCollector:
    """
    A `MetricsCollector` mock that accepts every call, for use with `verify()`.
    """
    metrics = mock(MetricsCollector)
    when(metrics).increment_counter(...).thenReturn(None)
    when(metrics).record_histogram(...).thenReturn(None)
    when(metrics).record_gauge(...).thenReturn(None)
    return metrics
