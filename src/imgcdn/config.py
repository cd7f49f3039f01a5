"""Configuration for image URL generation.

A host application configures imgcdn once, from the environment or a JSON
file, then builds an :class:`~imgcdn.client.ImageClient` from it::

    config = ImageConfig.from_env()
    client = build_client(config)

Environment variables:
    IMGCDN_PROVIDER   provider name or alias (default: local)
    IMGCDN_BASE_URL   base URL for the selected provider
    IMGCDN_ORIGIN     ambient origin used to resolve relative sources
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from imgcdn.catalog import DEFAULT_PROVIDER, get_provider_info
from imgcdn.client import ImageClient
from imgcdn.errors import ConfigurationError, UnknownProviderError
from imgcdn.providers.base import ProviderConfig
from imgcdn.providers.local import StaticAssetLookup

ENV_PREFIX = "IMGCDN_"


class ImageConfig(BaseModel):
    """Validated imgcdn settings.

    ``base_url`` applies to the selected ``provider`` only. ``providers``
    maps provider names to option overrides; a ``base_url`` key there sets
    (or, for the selected provider, overrides) that provider's base; every
    other key becomes a provider option (e.g. ``{"cloudinary": {"mode":
    "upload"}}``).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    provider: str = DEFAULT_PROVIDER
    base_url: str = ""
    origin: str | None = None
    providers: dict[str, dict[str, Any]] = {}

    @field_validator("provider")
    @classmethod
    def _known_provider(cls, value: str) -> str:
        info = get_provider_info(value)
        if info is None:
            raise ValueError(f"unknown provider {value!r}")
        return info.name

    @field_validator("providers")
    @classmethod
    def _canonical_provider_keys(
        cls, value: dict[str, dict[str, Any]]
    ) -> dict[str, dict[str, Any]]:
        normalized: dict[str, dict[str, Any]] = {}
        for name, options in value.items():
            info = get_provider_info(name)
            if info is None:
                raise ValueError(f"unknown provider {name!r}")
            normalized.setdefault(info.name, {}).update(options)
        return normalized

    @field_validator("origin")
    @classmethod
    def _empty_origin(cls, value: str | None) -> str | None:
        return value or None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Self:
        """Validate a plain mapping.

        Raises:
            ConfigurationError: If the mapping is not a valid configuration.
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            first = exc.errors()[0]
            loc = ".".join(str(part) for part in first["loc"])
            message = f"Invalid imgcdn configuration at {loc!r}: {first['msg']}"
            if loc == "provider":
                raise UnknownProviderError(message, provider=str(data.get("provider"))) from exc
            raise ConfigurationError(message) from exc

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Self:
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        for key in ("provider", "base_url", "origin"):
            value = env.get(ENV_PREFIX + key.upper())
            if value:
                data[key] = value
        return cls.from_mapping(data)

    @classmethod
    def from_file(cls, path: str | Path) -> Self:
        """Load a JSON configuration file.

        Raises:
            ConfigurationError: If the file is missing, not JSON, or invalid.
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Cannot read configuration {path}: {exc}") from exc
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Configuration {path} must be a JSON object")
        return cls.from_mapping(data)

    def provider_config(self, name: str | None = None) -> ProviderConfig:
        """Build the ProviderConfig for ``name`` (default: the selected provider)."""
        info = get_provider_info(name or self.provider)
        if info is None:
            raise UnknownProviderError(f"Unknown provider: {name!r}", provider=name)
        overrides = dict(self.providers.get(info.name, {}))
        default_base = self.base_url if info.name == self.provider else ""
        base_url = str(overrides.pop("base_url", default_base) or "")
        return ProviderConfig(base_url=base_url, origin=self.origin, options=overrides)


def build_client(
    config: ImageConfig, *, static_assets: StaticAssetLookup | None = None
) -> ImageClient:
    """Create an ImageClient with the configured provider as default.

    Providers listed under ``config.providers`` are registered too.
    """
    client = ImageClient(default_provider=config.provider)
    names = [config.provider, *(n for n in config.providers if n != config.provider)]
    for name in names:
        info = get_provider_info(name)
        if info is None:
            raise UnknownProviderError(f"Unknown provider: {name!r}", provider=name)
        kwargs: dict[str, Any] = {}
        if info.name == "local" and static_assets is not None:
            kwargs["static_assets"] = static_assets
        client.configure(info.name, config.provider_config(info.name), **kwargs)
    return client
