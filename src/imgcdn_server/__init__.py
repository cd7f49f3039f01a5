"""HTTP proxy answering the local provider's ``/_image`` URLs."""

from imgcdn_server.app import create_app
from imgcdn_server.engine import ImageEngine, PassthroughEngine
from imgcdn_server.fetch import SourceImage, SourceLoader
from imgcdn_server.retry import RetryPolicy, retry_with_policy

__all__ = [
    "ImageEngine",
    "PassthroughEngine",
    "RetryPolicy",
    "SourceImage",
    "SourceLoader",
    "create_app",
    "retry_with_policy",
]
