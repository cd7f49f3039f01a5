"""Providers translating canonical modifiers into vendor URL grammars."""

from imgcdn.providers.base import ProviderAdapter, ProviderConfig
from imgcdn.providers.cloudinary import CloudinaryMode, CloudinaryProvider
from imgcdn.providers.fastly import FastlyProvider
from imgcdn.providers.imagekit import ImageKitProvider
from imgcdn.providers.imgix import ImgixProvider
from imgcdn.providers.local import (
    LocalImageRequest,
    LocalProvider,
    SourceKind,
    StaticAssetLookup,
    StaticManifest,
    decode_modifiers,
    encode_modifiers,
    parse_local_path,
)
from imgcdn.providers.twicpics import TwicPicsProvider

__all__ = [
    "ProviderAdapter",
    "ProviderConfig",
    "CloudinaryMode",
    "CloudinaryProvider",
    "FastlyProvider",
    "ImageKitProvider",
    "ImgixProvider",
    "LocalImageRequest",
    "LocalProvider",
    "SourceKind",
    "StaticAssetLookup",
    "StaticManifest",
    "TwicPicsProvider",
    "decode_modifiers",
    "encode_modifiers",
    "parse_local_path",
]
