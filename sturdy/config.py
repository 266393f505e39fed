from dataclasses import dataclass, field
import logging
from typing import Callable, Dict, Mapping, Optional, Tuple, Union

import requests

from .metrics import MetricsCollector, NoopMetrics
from .model import ApiError, RequestInfo


RequestInterceptor = Callable[[str, Dict], Tuple[str, Dict]]
"""
Receives the URL and the keyword arguments for `requests.Session.request` and
returns the (possibly rewritten) pair.
"""

ResponseInterceptor = Callable[[requests.Response, RequestInfo], requests.Response]

ErrorInterceptor = Callable[[ApiError, RequestInfo], None]


def _pass_request(url: str, options: Dict) -> Tuple[str, Dict]:
    return url, options


def _pass_response(response: requests.Response, info: RequestInfo) -> requests.Response:
    return response


def _ignore_error(error: ApiError, info: RequestInfo) -> None:
    pass


@dataclass(frozen=True)
class ClientConfig:
    """
    Client configuration. Supplied once when the client is created and never changed afterwards.

    All durations are in milliseconds.
    """

    base_url: str

    default_timeout: float = 10000
    """
    Budget for a single attempt.
    """

    default_retries: int = 3
    """
    Retries after the first attempt. A call makes at most `default_retries + 1` attempts.
    """

    default_retry_delay: float = 1000
    """
    Base delay of the exponential backoff.
    """

    headers: Mapping[str, str] = field(default_factory=dict)
    on_request: RequestInterceptor = _pass_request
    on_response: ResponseInterceptor = _pass_response
    on_error: ErrorInterceptor = _ignore_error
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None
    metrics: MetricsCollector = field(default_factory=NoopMetrics)

    max_workers: int = 10
    """
    Number of threads available to carry out network attempts concurrently.
    """

    def __post_init__(self):
        if not self.base_url:
            raise ValueError('base_url is required')
        if self.default_timeout <= 0:
            raise ValueError('default_timeout must be positive, got {}'.format(self.default_timeout))
        if self.default_retries < 0:
            raise ValueError('default_retries must not be negative, got {}'.format(self.default_retries))
        if self.default_retry_delay < 0:
            raise ValueError('default_retry_delay must not be negative, got {}'.format(self.default_retry_delay))
        if self.max_workers < 1:
            raise ValueError('max_workers must be at least 1, got {}'.format(self.max_workers))
        if self.logger is None:
            object.__setattr__(self, 'logger', logging.getLogger('sturdy.client'))
