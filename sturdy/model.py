"""
Defines the types passed into and returned from the client.

These types are as simple as possible in order to most conveniently consume and
produce instances of them. Everything a caller receives is immutable.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from .cancellation import CancellationToken


class HttpMethod:
    GET = 'GET'
    POST = 'POST'
    PUT = 'PUT'
    PATCH = 'PATCH'
    DELETE = 'DELETE'


ALL_METHODS = frozenset({HttpMethod.GET, HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH, HttpMethod.DELETE})
BODY_METHODS = frozenset({HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH})


class ErrorKind(Enum):
    """
    The discriminant of a failure. Callers should branch on this rather than on the code.
    """
    NETWORK = 'network'
    TIMEOUT = 'timeout'
    CANCELLED = 'cancelled'
    CLIENT = 'client'
    SERVER = 'server'


@dataclass(frozen=True)
class ApiError:
    """
    A classified failure, created once and never mutated.
    """

    code: str
    """
    A stable code such as "TIMEOUT" or "CLIENT_ERROR_404".
    """

    kind: ErrorKind

    message: str
    """
    A human readable message. Taken from the response body when one could be parsed.
    """

    retryable: bool

    timestamp: str
    """
    ISO-8601 instant at which the failure was classified.
    """

    request_id: str
    """
    The correlation id that was sent in the X-Request-ID header.
    """

    details: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class CacheStrategy:
    enabled: bool
    ttl: float
    """
    Time-to-live in milliseconds.
    """
    key: Optional[str] = None
    """
    Overrides the default "METHOD:url" cache and de-duplication key.
    """


@dataclass(frozen=True)
class RequestOptions:
    """
    Per-call overrides. Anything left as `None` falls back to the client configuration.
    """

    headers: Optional[Mapping[str, str]] = None
    params: Optional[Mapping[str, Union[str, int, float, bool]]] = None
    timeout: Optional[float] = None
    retries: Optional[int] = None
    retry_delay: Optional[float] = None
    cache: Optional[CacheStrategy] = None
    signal: Optional[CancellationToken] = None


@dataclass(frozen=True)
class Request:
    """
    A fully resolved request for one logical call.

    The same instance is handed to every attempt made for the call.
    """

    method: str
    url: str
    headers: Mapping[str, str]
    body: Any = None
    timeout: float = 10000
    max_retries: int = 3
    retry_delay: float = 1000
    signal: Optional[CancellationToken] = None


@dataclass(frozen=True)
class RequestInfo:
    """
    Request metadata handed to interceptors and used for logging.
    """
    url: str
    method: str
    start_time: float
    request_id: str


@dataclass(frozen=True)
class Success:
    payload: Any
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    ok = True


@dataclass(frozen=True)
class Failure:
    error: ApiError
    status_code: int
    ok = False


Envelope = Union[Success, Failure]


@dataclass
class DependencyHealth:
    name: str
    status: str
    """
    One of "up", "down" or "unknown".
    """
    response_time: Optional[float] = None


@dataclass
class ServiceMetadata:
    """
    Health information reported by a service's health endpoint.
    """
    service_id: str
    status: str
    """
    One of "healthy", "degraded" or "unhealthy".
    """
    version: str
    uptime: float
    latency: float
    dependencies: List[DependencyHealth] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> 'ServiceMetadata':
        """
        Build from a health payload. Accepts both camelCase and snake_case keys.
        """
        dependencies = [
            DependencyHealth(name=item['name'],
                             status=item['status'],
                             response_time=item.get('responseTime', item.get('response_time')))
            for item in data.get('dependencies', [])
        ]
        return cls(service_id=data.get('serviceId', data.get('service_id')),
                   status=data['status'],
                   version=data['version'],
                   uptime=data['uptime'],
                   latency=data['latency'],
                   dependencies=dependencies)

