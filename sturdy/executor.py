from concurrent.futures import Executor, Future
import dataclasses
import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Union

import requests
from requests.structures import CaseInsensitiveDict

from . import errors
from .cancellation import AttemptScope, Source
from .config import RequestInterceptor, ResponseInterceptor
from .model import Request, RequestInfo, Success
from .util import DataclassJSONDecoder, DataclassJSONEncoder, sanitize_url


ResponseType = Optional[Union[type, Callable[[Any], Any]]]


def _close_late_response(future: Future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


class RequestExecutor:
    """
    Performs exactly one network attempt for a request.
    """

    def __init__(self,
                 session: requests.Session,
                 pool: Executor,
                 on_request: RequestInterceptor,
                 on_response: ResponseInterceptor,
                 logger: Union[logging.Logger, logging.LoggerAdapter]) -> None:
        self.__session = session
        self.__pool = pool
        self.__on_request = on_request
        self.__on_response = on_response
        self.__logger = logger

    def execute(self, request: Request, info: RequestInfo, response_type: ResponseType = None) -> Success:
        """
        Send the request once.

        The attempt runs on the worker pool while the calling thread waits for the
        first of: the response, the attempt timeout, or the caller's cancellation.

        @param request
          The resolved request.
        @param info
          Metadata for this call, shared by all of its attempts.
        @param response_type
          A dataclass to decode the payload into, or a callable that builds the
          payload from the decoded JSON. The raw JSON document if `None`.
        @return
          The success envelope.
        @throws ApiClientError
          If the attempt failed for any reason.
        """
        options: Dict[str, Any] = {
            'method': request.method,
            'headers': {
                'Content-Type': 'application/json',
                'X-Request-ID': info.request_id,
                **request.headers,
            },
            'timeout': request.timeout / 1000.0,
        }
        if request.body is not None:
            options['data'] = json.dumps(request.body, cls=DataclassJSONEncoder)

        url, options = self.__on_request(request.url, options)

        self.__logger.debug('Sending request {} {} ({})'.format(request.method, sanitize_url(url), info.request_id))

        with AttemptScope(request.timeout, request.signal) as scope:
            def send() -> requests.Response:
                scope.arm()
                return self.__session.request(url=url, **options)

            future = self.__pool.submit(send)
            future.add_done_callback(lambda _: scope.fire(Source.COMPLETED))
            winner = scope.wait()

        if winner is not Source.COMPLETED:
            if future.cancel():
                self.__logger.debug('Dropped queued request {} ({})'.format(sanitize_url(url), info.request_id))
            future.add_done_callback(_close_late_response)
            if winner is Source.TIMEOUT:
                raise errors.timeout_error(request.timeout, info.request_id)
            raise errors.cancelled_error(info.request_id)

        try:
            response = future.result()
        except requests.Timeout:
            raise errors.timeout_error(request.timeout, info.request_id)
        except requests.RequestException as e:
            raise errors.network_error(str(e), info.request_id)

        response = self.__on_response(response, info)

        if not 200 <= response.status_code < 300:
            raise errors.from_response(response.status_code, response.reason, response.content, info.request_id)

        try:
            payload = self._decode(response.content, response_type)
        except (ValueError, TypeError, KeyError) as e:
            raise errors.network_error('Could not decode response body: {}'.format(e), info.request_id)

        self.__logger.info('Request completed {} {} -> {} ({}, {}ms)'.format(
            request.method,
            sanitize_url(url),
            response.status_code,
            info.request_id,
            round((time.perf_counter() - info.start_time) * 1000),
        ))

        return Success(payload=payload,
                       status_code=response.status_code,
                       headers=CaseInsensitiveDict(response.headers))

    @staticmethod
    def _decode(content: bytes, response_type: ResponseType) -> Any:
        if not content:
            return None
        if response_type is not None and dataclasses.is_dataclass(response_type):
            return json.loads(content, cls=DataclassJSONDecoder, class_type=response_type)
        document = json.loads(content)
        if response_type is not None:
            return response_type(document)
        return document
