import dataclasses
import json
import re
import time
from typing import Any, Mapping, Optional, Type
from urllib.parse import urlencode, urljoin, urlsplit, urlunsplit
import uuid


def clamp(value, lower, upper):
    return sorted((lower, value, upper))[1]


def generate_request_id() -> str:
    """
    Generate a correlation id for a single logical request.
    """
    return 'req_{}_{}'.format(int(time.time() * 1000), uuid.uuid4().hex[:9])


_SENSITIVE_PATTERNS = (
    (re.compile(r'/\d+'), '/***'),
    (re.compile(r'token=[^&]+', re.IGNORECASE), 'token=***'),
    (re.compile(r'key=[^&]+', re.IGNORECASE), 'key=***'),
    (re.compile(r'password=[^&]+', re.IGNORECASE), 'password=***'),
)


def sanitize_url(url: str) -> str:
    """
    Mask ids and credentials in a URL so that it can be logged.

    E.g., "/users/123?token=abc" becomes "/users/***?token=***".
    """
    for pattern, replacement in _SENSITIVE_PATTERNS:
        url = pattern.sub(replacement, url)
    return url


def _format_param(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def build_url(base: str, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Resolve `path` against `base` and append `params` to the query string.

    Parameters are appended in insertion order after any query already present
    in `path`, so the result is stable and can be used as a cache key.
    """
    url = urljoin(base, path)
    if not params:
        return url

    scheme, netloc, url_path, query, fragment = urlsplit(url)
    extra = urlencode([(key, _format_param(value)) for key, value in params.items()])
    query = '{}&{}'.format(query, extra) if query else extra
    return urlunsplit((scheme, netloc, url_path, query, fragment))


class DataclassJSONEncoder(json.JSONEncoder):
    def default(self, o):
        if dataclasses.is_dataclass(o):
            return dataclasses.asdict(o)
        return super().default(o)


class DataclassJSONDecoder(json.JSONDecoder):
    def __init__(self, class_type: Type, **kwargs) -> None:
        super().__init__(**kwargs)
        self.__class_type = class_type

    def decode(self, s):
        result = super().decode(s)
        return self.__class_type(**result)
