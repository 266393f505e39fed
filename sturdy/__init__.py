from .cache import Cache, MemoryCache
from .cancellation import CancellationToken
from .client import ApiClient, get_api_client, initialize_api_client, reset_api_client
from .config import ClientConfig
from .errors import ApiClientError
from .health import fetch_service_health
from .metrics import MetricsCollector, NoopMetrics
from .model import (ApiError, CacheStrategy, DependencyHealth, Envelope, ErrorKind, Failure, HttpMethod,
                    RequestInfo, RequestOptions, ServiceMetadata, Success)
