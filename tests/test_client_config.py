"""Tests for the provider catalog, ImageClient routing and ImageConfig."""

from __future__ import annotations

import json
import logging

import pytest

from imgcdn import client as client_module
from imgcdn.catalog import (
    DEFAULT_PROVIDER,
    create_provider,
    get_provider_info,
    list_providers,
)
from imgcdn.client import ImageClient, get_default_client, get_image, set_default_client
from imgcdn.config import ImageConfig, build_client
from imgcdn.errors import ConfigurationError, UnknownProviderError
from imgcdn.providers import (
    CloudinaryProvider,
    ImgixProvider,
    LocalProvider,
    ProviderAdapter,
    ProviderConfig,
    StaticManifest,
)


@pytest.fixture(autouse=True)
def _reset_default_client():
    set_default_client(None)
    yield
    set_default_client(None)


# ================================================================== #
# Catalog
# ================================================================== #


class TestCatalog:
    def test_lists_every_provider(self):
        names = [p.name for p in list_providers()]
        assert names == ["local", "cloudinary", "twicpics", "fastly", "imgix", "imagekit"]

    def test_default_provider(self):
        assert DEFAULT_PROVIDER == "local"

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("imgix", "imgix"),
            ("IMGIX", "imgix"),
            (" cloudinary ", "cloudinary"),
            ("ipx", "local"),
            ("static", "local"),
            ("twic", "twicpics"),
        ],
    )
    def test_lookup(self, name, expected):
        info = get_provider_info(name)
        assert info is not None
        assert info.name == expected

    def test_unknown_lookup(self):
        assert get_provider_info("akamai") is None

    @pytest.mark.parametrize("info", list_providers(), ids=lambda info: info.name)
    def test_factories_build_adapters(self, info):
        provider = create_provider(info.name)
        assert isinstance(provider, ProviderAdapter)
        assert provider.provider_name == info.name

    @pytest.mark.parametrize("info", list_providers(), ids=lambda info: info.name)
    def test_examples_show_a_width(self, info):
        assert "200" in info.example

    def test_create_with_config(self):
        provider = create_provider(
            "cloudinary",
            ProviderConfig(base_url="https://res.cloudinary.com/demo/image/upload"),
        )
        assert isinstance(provider, CloudinaryProvider)
        assert provider.get_image("a.png", {"width": 1}).url.endswith("/upload/w_1/a.png")

    def test_create_unknown(self):
        with pytest.raises(UnknownProviderError) as exc_info:
            create_provider("akamai")
        assert isinstance(exc_info.value, ConfigurationError)
        assert "akamai" in str(exc_info.value)


# ================================================================== #
# ImageClient
# ================================================================== #


class TestImageClient:
    def test_no_providers(self):
        with pytest.raises(ConfigurationError):
            ImageClient().get_image("/a.png")

    def test_single_provider_is_used(self):
        client = ImageClient()
        client.register_provider("imgix", ImgixProvider())
        assert client.get_image("/a.png", {"width": 5}).url == "/a.png?w=5"

    def test_default_provider(self):
        client = ImageClient(default_provider="imgix")
        client.configure("imgix")
        client.configure("fastly")
        assert client.default_provider == "imgix"
        assert client.get_image("/a.png", {"width": 5}).url == "/a.png?w=5"

    def test_explicit_provider_wins(self):
        client = ImageClient(default_provider="imgix")
        client.configure("imgix")
        client.configure("fastly")
        assert client.get_image("/a.png", {"width": 5}, provider="fastly").url == "/a.png?width=5"

    def test_ambiguous_without_default(self):
        client = ImageClient()
        client.configure("imgix")
        client.configure("fastly")
        with pytest.raises(ConfigurationError, match="Cannot choose"):
            client.get_image("/a.png")

    def test_alias_resolves_to_registered_provider(self):
        client = ImageClient()
        client.configure("ipx", ProviderConfig(origin="https://site.example"))
        assert client.providers == ["local"]
        assert client.get_image("/a.png", provider="ipx").url.startswith("/_image/local/remote/")

    def test_unregistered_provider(self):
        client = ImageClient()
        client.configure("imgix")
        with pytest.raises(ConfigurationError, match="not registered"):
            client.get_image("/a.png", provider="cloudinary")

    def test_configure_passes_kwargs(self):
        client = ImageClient()
        client.configure("local", static_assets=StaticManifest(["/a.png"]))
        assert client.get_image("/a.png", {"width": 1}).is_static

    def test_logs_at_debug(self, caplog):
        client = ImageClient()
        client.configure("imgix")
        with caplog.at_level(logging.DEBUG, logger="imgcdn.client"):
            client.get_image("/a.png", {"width": 5})
        assert "/a.png?w=5" in caplog.text

    def test_default_client_uses_local(self):
        client = get_default_client()
        assert client.providers == ["local"]
        assert get_default_client() is client
        assert get_image("/a.png").url == "/_image/local/local/_/_/%2Fa.png"

    def test_set_default_client(self):
        custom = ImageClient()
        custom.configure("imgix")
        set_default_client(custom)
        assert client_module.get_image("/a.png", {"height": 3}).url == "/a.png?h=3"

    def test_explicit_client_argument(self):
        custom = ImageClient()
        custom.configure("fastly")
        assert get_image("/a.png", {"width": 2}, client=custom).url == "/a.png?width=2"


# ================================================================== #
# ImageConfig
# ================================================================== #


class TestImageConfig:
    def test_defaults(self):
        config = ImageConfig()
        assert config.provider == "local"
        assert config.base_url == ""
        assert config.origin is None

    def test_alias_normalized(self):
        assert ImageConfig(provider="twic").provider == "twicpics"

    def test_from_env(self):
        config = ImageConfig.from_env(
            {
                "IMGCDN_PROVIDER": "imgix",
                "IMGCDN_BASE_URL": "https://demo.imgix.net",
                "IMGCDN_ORIGIN": "",
                "UNRELATED": "x",
            }
        )
        assert config.provider == "imgix"
        assert config.origin is None
        client = build_client(config)
        assert (
            client.get_image("/a.png", {"width": 100}).url
            == "https://demo.imgix.net/a.png?w=100"
        )

    def test_from_env_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("IMGCDN_PROVIDER", "fastly")
        monkeypatch.delenv("IMGCDN_BASE_URL", raising=False)
        monkeypatch.delenv("IMGCDN_ORIGIN", raising=False)
        assert ImageConfig.from_env().provider == "fastly"

    def test_from_env_unknown_provider(self):
        with pytest.raises(UnknownProviderError):
            ImageConfig.from_env({"IMGCDN_PROVIDER": "akamai"})

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError):
            ImageConfig.from_mapping({"provider": "imgix", "cdn": "x"})

    def test_unknown_provider_section(self):
        with pytest.raises(ConfigurationError, match="providers"):
            ImageConfig.from_mapping({"providers": {"akamai": {}}})

    def test_provider_sections_use_canonical_names(self):
        config = ImageConfig.from_mapping({"providers": {"ipx": {"provider_key": "cdn"}}})
        assert config.providers == {"local": {"provider_key": "cdn"}}

    def test_from_file(self, tmp_path):
        path = tmp_path / "imgcdn.json"
        path.write_text(
            json.dumps(
                {
                    "provider": "cloudinary",
                    "providers": {
                        "cloudinary": {
                            "base_url": "https://res.cloudinary.com/demo/image/upload/remote"
                        }
                    },
                }
            )
        )
        client = build_client(ImageConfig.from_file(path))
        url = client.get_image(
            "1/13/Benedict_Cumberbatch_2011.png", {"width": 300, "height": 300}
        ).url
        assert url == (
            "https://res.cloudinary.com/demo/image/upload/w_300,h_300/remote/1/13/"
            "Benedict_Cumberbatch_2011.png"
        )

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ImageConfig.from_file(tmp_path / "missing.json")

    def test_from_file_invalid_json(self, tmp_path):
        path = tmp_path / "imgcdn.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            ImageConfig.from_file(path)

    def test_from_file_not_an_object(self, tmp_path):
        path = tmp_path / "imgcdn.json"
        path.write_text("[]")
        with pytest.raises(ConfigurationError):
            ImageConfig.from_file(path)

    def test_provider_config_options(self):
        config = ImageConfig.from_mapping(
            {
                "provider": "cloudinary",
                "base_url": "https://cdn.example.com/assets",
                "origin": "https://site.example",
                "providers": {"cloudinary": {"mode": "upload"}},
            }
        )
        provider_config = config.provider_config()
        assert provider_config.base_url == "https://cdn.example.com/assets"
        assert provider_config.origin == "https://site.example"
        assert dict(provider_config.options) == {"mode": "upload"}

    def test_top_level_base_url_only_for_selected_provider(self):
        config = ImageConfig.from_mapping(
            {
                "provider": "imgix",
                "base_url": "https://demo.imgix.net",
                "providers": {"fastly": {"base_url": "https://images.example.com"}, "imagekit": {}},
            }
        )
        assert config.provider_config("fastly").base_url == "https://images.example.com"
        assert config.provider_config("imagekit").base_url == ""

    def test_build_client_registers_extra_providers(self):
        config = ImageConfig.from_mapping(
            {"provider": "imgix", "providers": {"fastly": {}, "ipx": {}}}
        )
        client = build_client(config)
        assert sorted(client.providers) == ["fastly", "imgix", "local"]
        assert client.default_provider == "imgix"

    def test_build_client_static_assets(self):
        client = build_client(ImageConfig(), static_assets=StaticManifest(["/logo.png"]))
        result = client.get_image("/logo.png")
        assert result.is_static
        assert isinstance(client._resolve_provider(None), LocalProvider)
