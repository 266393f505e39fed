from typing import Optional

from .client import ApiClient, get_api_client
from .model import CacheStrategy, Envelope, RequestOptions, ServiceMetadata


HEALTH_PATH = '/api/v1/services/{}/health'
HEALTH_RETRIES = 2
HEALTH_CACHE_TTL = 30000


def fetch_service_health(service_id: str, timeout: float = 5000, client: Optional[ApiClient] = None) -> Envelope:
    """
    Fetch the health of a service.

    Health is cached for 30 seconds, so polling this is cheap.

    @param service_id
      The id of the service to check.
    @param timeout
      Budget for each attempt, in milliseconds.
    @param client
      The client to use. Defaults to the client set up with `initialize_api_client()`.
    @return
      An envelope whose payload, on success, is a `ServiceMetadata`.
    @throws RuntimeError
      If no client is given and no default client has been initialized.
    """
    if client is None:
        client = get_api_client()
        if client is None:
            raise RuntimeError('API client not initialized. Call initialize_api_client() first.')

    options = RequestOptions(timeout=timeout,
                             retries=HEALTH_RETRIES,
                             cache=CacheStrategy(enabled=True, ttl=HEALTH_CACHE_TTL))
    return client.get(HEALTH_PATH.format(service_id), options, response_type=ServiceMetadata.from_json)
