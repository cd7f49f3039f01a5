"""imgcdn: image CDN URL builder.

Provides one canonical modifier vocabulary across Cloudinary, TwicPics,
Fastly, imgix, ImageKit and a local image proxy.
"""

from __future__ import annotations

from imgcdn.catalog import ProviderInfo, create_provider, get_provider_info, list_providers
from imgcdn.client import ImageClient, get_default_client, get_image, set_default_client
from imgcdn.config import ImageConfig, build_client
from imgcdn.errors import (
    ConfigurationError,
    ContractViolationError,
    ImageURLError,
    SourceNotFoundError,
    UnknownProviderError,
    UpstreamError,
)
from imgcdn.providers import (
    CloudinaryMode,
    CloudinaryProvider,
    FastlyProvider,
    ImageKitProvider,
    ImgixProvider,
    LocalImageRequest,
    LocalProvider,
    ProviderAdapter,
    ProviderConfig,
    SourceKind,
    StaticAssetLookup,
    StaticManifest,
    TwicPicsProvider,
    parse_local_path,
)
from imgcdn.types import Fit, ImageResult, Modifiers

__all__ = [
    # Client
    "ImageClient",
    "get_default_client",
    "set_default_client",
    "get_image",
    # Config
    "ImageConfig",
    "build_client",
    # Types
    "Fit",
    "Modifiers",
    "ImageResult",
    # Providers
    "ProviderAdapter",
    "ProviderConfig",
    "CloudinaryMode",
    "CloudinaryProvider",
    "FastlyProvider",
    "ImageKitProvider",
    "ImgixProvider",
    "LocalProvider",
    "LocalImageRequest",
    "SourceKind",
    "StaticAssetLookup",
    "StaticManifest",
    "TwicPicsProvider",
    "parse_local_path",
    # Catalog
    "ProviderInfo",
    "create_provider",
    "get_provider_info",
    "list_providers",
    # Errors
    "ImageURLError",
    "ContractViolationError",
    "ConfigurationError",
    "UnknownProviderError",
    "UpstreamError",
    "SourceNotFoundError",
]
