"""unmatched-line: client-side data layer for the poetry content service."""

__version__ = "0.4.0"

from unmatched_line.cache import ResponseCache
from unmatched_line.client import ContentServiceClient
from unmatched_line.config import ClientConfig, load_config
from unmatched_line.errors import ContentServiceError, Unauthorized
from unmatched_line.stores import StoreHub

__all__ = [
    "ClientConfig",
    "ContentServiceClient",
    "ContentServiceError",
    "ResponseCache",
    "StoreHub",
    "Unauthorized",
    "__version__",
    "load_config",
]
