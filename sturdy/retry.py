from enum import Enum
import logging
import time
from typing import Callable, Optional, Tuple, Union

from . import errors
from .backoff import calculate_backoff
from .cancellation import CancellationToken
from .config import ErrorInterceptor
from .executor import RequestExecutor, ResponseType
from .metrics import MetricsCollector
from .model import Envelope, Failure, Request, RequestInfo, Success
from .util import sanitize_url


Sleep = Callable[[float, Optional[CancellationToken]], None]


def interruptible_sleep(seconds: float, token: Optional[CancellationToken]) -> None:
    """
    Sleep for `seconds`, returning early if `token` is cancelled.
    """
    if token is None:
        time.sleep(seconds)
    else:
        token.wait(seconds)


class RetryState(Enum):
    ATTEMPTING = 'attempting'
    RETRY_WAIT = 'retry_wait'
    SUCCESS = 'success'
    EXHAUSTED = 'exhausted'


class RetryOrchestrator:
    """
    Drives the attempts of one logical call.

    The orchestrator is the only component that decides whether to try again, and
    it decides on nothing but the error's `retryable` flag and the remaining
    attempt budget.
    """

    def __init__(self,
                 executor: RequestExecutor,
                 metrics: MetricsCollector,
                 logger: Union[logging.Logger, logging.LoggerAdapter],
                 on_error: ErrorInterceptor,
                 sleep: Sleep = interruptible_sleep) -> None:
        self.__executor = executor
        self.__metrics = metrics
        self.__logger = logger
        self.__on_error = on_error
        self.__sleep = sleep

    def run(self, request: Request, info: RequestInfo, response_type: ResponseType = None) -> Envelope:
        attempt = 0
        state = RetryState.ATTEMPTING
        while state is RetryState.ATTEMPTING:
            success, error = self._attempt(request, info, attempt, response_type)
            if success is not None:
                state = RetryState.SUCCESS
            elif not error.retryable or attempt == request.max_retries:
                state = RetryState.EXHAUSTED
            else:
                state = RetryState.RETRY_WAIT
                delay = calculate_backoff(attempt, request.retry_delay)
                self.__logger.debug('Retrying {} in {:.0f}ms (attempt {} of {})'.format(
                    sanitize_url(request.url), delay, attempt + 2, request.max_retries + 1))
                self.__sleep(delay / 1000.0, request.signal)
                attempt += 1
                state = RetryState.ATTEMPTING

        if state is RetryState.SUCCESS:
            return success
        return self._exhaust(error, request, info)

    def _attempt(self, request: Request, info: RequestInfo, attempt: int,
                 response_type: ResponseType) -> Tuple[Optional[Success], Optional[errors.ApiClientError]]:
        try:
            if request.signal is not None and request.signal.cancelled:
                raise errors.cancelled_error(info.request_id)

            success = self.__executor.execute(request, info, response_type)
        except Exception as e:
            error = errors.classify(e, info.request_id, request.timeout)
            self.__logger.warning('Request failed {} (attempt {} of {}, {}, {})'.format(
                sanitize_url(request.url), attempt + 1, request.max_retries + 1, error.code, info.request_id))
            return None, error

        self.__metrics.increment_counter('api.request.success', {
            'method': request.method,
            'attempt': str(attempt),
        })
        return success, None

    def _exhaust(self, error: errors.ApiClientError, request: Request, info: RequestInfo) -> Failure:
        self.__metrics.increment_counter('api.request.failure', {
            'method': request.method,
            'error': error.code,
        })

        try:
            self.__on_error(error.error, info)
        except Exception:
            self.__logger.exception('Error interceptor failed for {}'.format(info.request_id))

        return Failure(error=error.error, status_code=error.status)
