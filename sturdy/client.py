from concurrent.futures import Future, ThreadPoolExecutor
import threading
import time
from typing import Any, Optional

import requests

from .cache import Cache, MemoryCache
from .config import ClientConfig
from .executor import RequestExecutor, ResponseType
from .model import ALL_METHODS, BODY_METHODS, Envelope, HttpMethod, Request, RequestInfo, RequestOptions, Success
from .pending import PendingRequests
from .retry import RetryOrchestrator, Sleep, interruptible_sleep
from .util import build_url, generate_request_id, sanitize_url


_NO_OPTIONS = RequestOptions()


def _request_key(method: str, url: str, options: RequestOptions, response_type: ResponseType) -> str:
    """
    The cache and de-duplication key of a call.

    Calls that decode the same response differently never share a key, so a
    cached or in-flight payload always has the type its caller asked for.
    """
    if options.cache is not None and options.cache.key:
        key = options.cache.key
    else:
        key = '{}:{}'.format(method, url)

    if response_type is not None:
        key = '{}#{}.{}'.format(key,
                                getattr(response_type, '__module__', ''),
                                getattr(response_type, '__qualname__', repr(response_type)))
    return key


class ApiClient:
    """
    A JSON HTTP client with retries, response caching and de-duplication of identical GETs.

    Every call returns an envelope: either `Success` or `Failure`, told apart by `ok`.
    No call raises because the request failed.

    Example::

        client = ApiClient(ClientConfig(base_url='https://api.example.com'))
        result = client.get('/users/123')
        if result.ok:
            print(result.payload)
    """

    def __init__(self,
                 config: ClientConfig,
                 session: Optional[requests.Session] = None,
                 cache: Optional[Cache] = None,
                 sleep: Sleep = interruptible_sleep) -> None:
        """
        @param config
          The client configuration.
        @param session
          The session to send requests with. A new one is created if omitted.
        @param cache
          Where successful GET payloads are cached. A `MemoryCache` if omitted.
        @param sleep
          How to wait between attempts.
        """
        self.__config = config
        self.__logger = config.logger
        self.__metrics = config.metrics
        self.__session = session if session is not None else requests.Session()
        self.__pool = ThreadPoolExecutor(max_workers=config.max_workers, thread_name_prefix='sturdy')
        self.__cache = cache if cache is not None else MemoryCache()
        self.__pending = PendingRequests()
        self.__lock = threading.Lock()

        executor = RequestExecutor(session=self.__session,
                                   pool=self.__pool,
                                   on_request=config.on_request,
                                   on_response=config.on_response,
                                   logger=self.__logger)
        self.__orchestrator = RetryOrchestrator(executor=executor,
                                                metrics=self.__metrics,
                                                logger=self.__logger,
                                                on_error=config.on_error,
                                                sleep=sleep)

    @property
    def config(self) -> ClientConfig:
        return self.__config

    # region Verbs

    def get(self, path: str, options: Optional[RequestOptions] = None, response_type: ResponseType = None) -> Envelope:
        return self.request(HttpMethod.GET, path, None, options, response_type)

    def post(self, path: str, body: Any = None, options: Optional[RequestOptions] = None,
             response_type: ResponseType = None) -> Envelope:
        return self.request(HttpMethod.POST, path, body, options, response_type)

    def put(self, path: str, body: Any = None, options: Optional[RequestOptions] = None,
            response_type: ResponseType = None) -> Envelope:
        return self.request(HttpMethod.PUT, path, body, options, response_type)

    def patch(self, path: str, body: Any = None, options: Optional[RequestOptions] = None,
              response_type: ResponseType = None) -> Envelope:
        return self.request(HttpMethod.PATCH, path, body, options, response_type)

    def delete(self, path: str, options: Optional[RequestOptions] = None,
               response_type: ResponseType = None) -> Envelope:
        return self.request(HttpMethod.DELETE, path, None, options, response_type)

    # endregion

    def request(self, method: str, path: str, body: Any = None, options: Optional[RequestOptions] = None,
                response_type: ResponseType = None) -> Envelope:
        """
        Perform a call.

        Steps:
        1. Compute the key: the explicit cache key, or "METHOD:url" with the query embedded, qualified by
           the response type if one is given.
        2. For a GET with caching enabled, answer from the cache if possible.
        3. For a GET with an identical call in flight, wait for that call's result.
        4. Otherwise, run the call through the retry orchestrator.
        5. Cache a successful GET if asked to, release the in-flight entry and record the duration.
        """
        if method not in ALL_METHODS:
            raise ValueError('Unsupported method {}'.format(method))
        if body is not None and method not in BODY_METHODS:
            raise ValueError('{} requests do not carry a body'.format(method))

        options = options or _NO_OPTIONS
        config = self.__config
        request_id = generate_request_id()
        start_time = time.perf_counter()

        url = build_url(config.base_url, path, options.params)
        key = _request_key(method, url, options, response_type)
        caching = method == HttpMethod.GET and options.cache is not None and options.cache.enabled

        cached = None
        pending = None
        pending_count = None
        with self.__lock:
            if caching:
                cached = self.__cache.get(key)

            if cached is None:
                pending = self.__pending.get(key) if method == HttpMethod.GET else None
                if pending is None:
                    handle = Future()
                    if method == HttpMethod.GET:
                        self.__pending.register(key, handle)
                        pending_count = len(self.__pending)

        if cached is not None:
            self.__logger.debug('Cache hit {} ({})'.format(sanitize_url(url), request_id))
            self.__metrics.increment_counter('api.cache.hit', {'path': path})
            return Success(payload=cached, status_code=200, headers={})
        if caching:
            self.__metrics.increment_counter('api.cache.miss', {'path': path})
        if pending_count is not None:
            self.__metrics.record_gauge('api.requests.pending', pending_count)

        if pending is not None:
            self.__logger.debug('Request deduplicated {} ({})'.format(sanitize_url(url), request_id))
            return pending.result()

        request = Request(method=method,
                          url=url,
                          headers={**config.headers, **(options.headers or {})},
                          body=body,
                          timeout=options.timeout if options.timeout is not None else config.default_timeout,
                          max_retries=options.retries if options.retries is not None else config.default_retries,
                          retry_delay=(options.retry_delay if options.retry_delay is not None
                                       else config.default_retry_delay),
                          signal=options.signal)
        info = RequestInfo(url=url, method=method, start_time=start_time, request_id=request_id)

        result = None
        failure = None
        try:
            result = self.__orchestrator.run(request, info, response_type)
            return result
        except BaseException as e:
            failure = e
            raise
        finally:
            with self.__lock:
                if result is not None and result.ok and caching:
                    self.__cache.set(key, result.payload, options.cache.ttl)
                if method == HttpMethod.GET:
                    self.__pending.resolve(key)
                    pending_count = len(self.__pending)

            if failure is not None:
                handle.set_exception(failure)
            else:
                handle.set_result(result)

            if method == HttpMethod.GET:
                self.__metrics.record_gauge('api.requests.pending', pending_count)

            self.__metrics.record_histogram('api.request.duration', (time.perf_counter() - start_time) * 1000, {
                'method': method,
                'path': path,
                'outcome': 'success' if result is not None and result.ok else 'failure',
            })

    def clear_cache(self) -> None:
        """
        Empty the cache. Calls already in flight are unaffected.
        """
        with self.__lock:
            self.__cache.clear()
        self.__logger.info('Cache cleared')

    def close(self) -> None:
        self.__pool.shutdown(wait=False)
        self.__session.close()
        self.__cache.close()

    def __enter__(self) -> 'ApiClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# region Default client
#
# Process-wide state. Nothing initialises it implicitly: call
# `initialize_api_client()` once, then fetch the handle with `get_api_client()`.

_default_client: Optional[ApiClient] = None
_default_lock = threading.Lock()


def initialize_api_client(config: ClientConfig) -> ApiClient:
    global _default_client
    with _default_lock:
        if _default_client is not None:
            raise RuntimeError('The default API client is already initialized')
        _default_client = ApiClient(config)
        return _default_client


def get_api_client() -> Optional[ApiClient]:
    return _default_client


def reset_api_client() -> None:
    """
    Close and forget the default client, if there is one.
    """
    global _default_client
    with _default_lock:
        client, _default_client = _default_client, None
    if client is not None:
        client.close()

# endregion
