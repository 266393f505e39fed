"""
Classification of failures.

Every failure is described by one `ApiError`, discriminated by its `ErrorKind`.
The factories here never raise, whatever they are handed.
"""

from datetime import datetime, timezone
import json
from typing import Any, Mapping, Optional

import requests

from .model import ApiError, ErrorKind


DEFAULT_MESSAGE = 'Request failed'


class ApiClientError(Exception):
    """
    Raised by a single attempt. Only the retry orchestrator catches it.
    """

    def __init__(self, error: ApiError, status: int) -> None:
        super().__init__(error.message)
        self.__error = error
        self.__status = status

    @property
    def error(self) -> ApiError:
        return self.__error

    @property
    def status(self) -> int:
        return self.__status

    @property
    def kind(self) -> ErrorKind:
        return self.__error.kind

    @property
    def code(self) -> str:
        return self.__error.code

    @property
    def retryable(self) -> bool:
        return self.__error.retryable


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _build(code: str, kind: ErrorKind, message: str, retryable: bool, status: int, request_id: str,
           details: Optional[Mapping[str, Any]] = None) -> ApiClientError:
    error = ApiError(code=code,
                     kind=kind,
                     message=message,
                     retryable=retryable,
                     timestamp=_now(),
                     request_id=request_id,
                     details=details)
    return ApiClientError(error, status)


def network_error(message: str, request_id: str) -> ApiClientError:
    return _build('NETWORK_ERROR', ErrorKind.NETWORK, message or 'Network request failed', True, 0, request_id)


def timeout_error(timeout: float, request_id: str) -> ApiClientError:
    return _build('TIMEOUT', ErrorKind.TIMEOUT, 'Request timed out after {:g}ms'.format(timeout), True, 408,
                  request_id)


def cancelled_error(request_id: str) -> ApiClientError:
    return _build('CANCELLED', ErrorKind.CANCELLED, 'Request cancelled', False, 0, request_id)


def parse_error_body(body: Optional[bytes]) -> Optional[Any]:
    """
    Best-effort JSON parse of an error response body.

    @return
      The decoded document, or `None` if the body is empty or not JSON.
    """
    if not body:
        return None
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None


def from_response(status: int, reason: Optional[str], body: Optional[bytes], request_id: str) -> ApiClientError:
    """
    Classify a response whose status is outside of 200-299.

    4xx responses are the requester's fault and are not retried. 5xx responses are
    retried. Anything else (e.g. an unfollowed redirect) is treated like a client
    error with its own code.
    """
    document = parse_error_body(body)
    details = document if isinstance(document, dict) else None

    message = None
    if details is not None and isinstance(details.get('message'), str):
        message = details['message']
    message = message or reason or DEFAULT_MESSAGE

    if 400 <= status < 500:
        return _build('CLIENT_ERROR_{}'.format(status), ErrorKind.CLIENT, message, False, status, request_id, details)
    if 500 <= status < 600:
        return _build('SERVER_ERROR_{}'.format(status), ErrorKind.SERVER, message, True, status, request_id, details)
    return _build('UNEXPECTED_STATUS_{}'.format(status), ErrorKind.CLIENT, message, False, status, request_id,
                  details)


def classify(exc: BaseException, request_id: str, timeout: Optional[float] = None) -> ApiClientError:
    """
    Turn any exception raised during an attempt into an `ApiClientError`.
    """
    if isinstance(exc, ApiClientError):
        return exc
    if isinstance(exc, requests.Timeout) and timeout is not None:
        return timeout_error(timeout, request_id)
    return network_error(str(exc), request_id)
