"""CLI entry point for imgcdn.

Usage:
    imgcdn url /cat.png --provider imgix --width 200          # Build a URL
    imgcdn url cat.png --provider cloudinary \\
        --base-url https://res.cloudinary.com/demo/image/upload --fit contain
    imgcdn url /cat.png -m dpr=2 --option mode=fetch          # Passthrough keys, options
    imgcdn providers                                          # List providers
    imgcdn parse "/_image/local/remote/_/w_200/https%3A%2F%2Fa.com%2Fb.png"
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from imgcdn.catalog import list_providers
from imgcdn.config import ImageConfig, build_client
from imgcdn.errors import ImageURLError
from imgcdn.providers.local import StaticManifest, parse_local_path
from imgcdn.types import Modifiers


def _key_value(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    return key, value


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="imgcdn",
        description="Build image CDN URLs from one set of modifiers",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # --- url command ---
    url_parser = subparsers.add_parser("url", help="Build an image URL")
    url_parser.add_argument("source", type=str, help="Image source (URL or site path)")
    url_parser.add_argument(
        "--provider",
        type=str,
        default=None,
        help="Provider name or alias. Default: $IMGCDN_PROVIDER or local",
    )
    url_parser.add_argument("--width", type=str, default=None)
    url_parser.add_argument("--height", type=str, default=None)
    url_parser.add_argument("--fit", type=str, default=None)
    url_parser.add_argument("--format", type=str, default=None)
    url_parser.add_argument("--quality", type=str, default=None)
    url_parser.add_argument(
        "-m",
        "--modifier",
        type=_key_value,
        action="append",
        default=[],
        help="Provider-specific passthrough modifier (key=value, repeatable)",
    )
    url_parser.add_argument("--base-url", type=str, default=None, help="Provider base URL")
    url_parser.add_argument(
        "--origin", type=str, default=None, help="Origin for resolving relative sources"
    )
    url_parser.add_argument(
        "--option",
        type=_key_value,
        action="append",
        default=[],
        help="Provider option (key=value, repeatable), e.g. mode=upload",
    )
    url_parser.add_argument(
        "--config", type=str, default=None, help="JSON configuration file"
    )
    url_parser.add_argument(
        "--static-manifest",
        type=str,
        default=None,
        help="JSON list of static asset paths (local provider)",
    )

    # --- providers command ---
    subparsers.add_parser("providers", help="List available providers")

    # --- parse command ---
    parse_parser = subparsers.add_parser("parse", help="Decode a local /_image path")
    parse_parser.add_argument("path", type=str, help="Percent-encoded proxy path")
    parse_parser.add_argument("--prefix", type=str, default="/_image")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "url":
            _cmd_url(args)
        elif args.command == "providers":
            _cmd_providers()
        elif args.command == "parse":
            _cmd_parse(args.path, args.prefix)
    except ImageURLError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _load_config(args: argparse.Namespace) -> ImageConfig:
    """Merge config file (or environment) with command-line overrides."""
    base = ImageConfig.from_file(args.config) if args.config else ImageConfig.from_env()
    data: dict[str, Any] = base.model_dump()
    if args.provider:
        data["provider"] = args.provider
    if args.origin:
        data["origin"] = args.origin
    if args.base_url is not None:
        data["base_url"] = args.base_url
    config = ImageConfig.from_mapping(data)

    if args.option:
        providers = {name: dict(opts) for name, opts in config.providers.items()}
        providers.setdefault(config.provider, {}).update(dict(args.option))
        config = ImageConfig.from_mapping({**config.model_dump(), "providers": providers})
    return config


def _cmd_url(args: argparse.Namespace) -> None:
    """Print the URL for one source."""
    config = _load_config(args)

    static_assets = None
    if args.static_manifest:
        try:
            static_assets = StaticManifest.from_file(args.static_manifest)
        except (OSError, ValueError) as e:
            print(f"Error: Cannot load static manifest: {e}", file=sys.stderr)
            sys.exit(1)

    client = build_client(config, static_assets=static_assets)

    fields: dict[str, Any] = {
        "width": args.width,
        "height": args.height,
        "fit": args.fit,
        "format": args.format,
        "quality": args.quality,
    }
    modifiers = Modifiers.from_mapping(
        {**{k: v for k, v in fields.items() if v is not None}, "extras": dict(args.modifier)}
    )

    result = client.get_image(args.source, modifiers)
    print(result.url)
    if result.is_static:
        print("(static asset, no transform)", file=sys.stderr)


def _cmd_providers() -> None:
    """Print the provider catalog."""
    for info in list_providers():
        aliases = f" (aliases: {', '.join(info.aliases)})" if info.aliases else ""
        print(f"{info.name:<12} {info.display_name:<24} {info.grammar}{aliases}")
        print(f"{'':<12} e.g. {info.example}")


def _cmd_parse(path: str, prefix: str) -> None:
    """Decode a local proxy path and print its parts."""
    request = parse_local_path(path, prefix=prefix)
    mods = request.modifiers
    print(f"Provider key: {request.provider_key}")
    print(f"Source kind:  {request.source_kind}")
    print(f"Source:       {request.source}")
    print(f"Format:       {request.format or '(original)'}")
    print(f"Width:        {mods.width if mods.width is not None else '-'}")
    print(f"Height:       {mods.height if mods.height is not None else '-'}")
    print(f"Fit:          {mods.fit or '-'}")
    print(f"Quality:      {mods.quality if mods.quality is not None else '-'}")
    for key, value in mods.extras:
        print(f"  {key} = {value}")


if __name__ == "__main__":
    main()
