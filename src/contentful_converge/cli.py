"""Command-line entry point.

Reads one resource's flat attributes from a YAML or JSON file, runs a
single operation against the Contentful Management API and prints
``{"attributes": ..., "diagnostics": [...]}`` as JSON on stdout.  Logs go
to stderr (and optionally a file) so stdout stays machine-readable.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from . import __version__
from .config import Config, load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import UnifiedConfig, build_config
from .logger import setup_logging
from .provider import OPERATIONS, RESOURCE_TYPES, Provider, format_attribute_errors

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contentful-converge",
        description="Converge one Contentful resource towards its declared attributes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create an entry declared in entry.yml (token from CONTENTFUL_MANAGEMENT_TOKEN)
  contentful-converge create contentful_entry --file entry.yml

  # Refresh a webhook from the API, attributes piped on stdin
  cat webhook.json | contentful-converge read contentful_webhook

  # Delete an asset in a non-default environment with request tracing
  contentful-converge delete contentful_asset --file asset.yml --environment staging --debug
""",
    )
    parser.add_argument("operation", choices=OPERATIONS)
    parser.add_argument("resource_type", choices=sorted(RESOURCE_TYPES))
    parser.add_argument(
        "--file",
        default="-",
        help="YAML or JSON file holding the resource attributes ('-' for stdin, the default)",
    )
    parser.add_argument(
        "--token",
        help="CMA token (takes precedence over CONTENTFUL_MANAGEMENT_TOKEN and config files)"
        " (visible in process list -- prefer the env var)",
    )
    parser.add_argument(
        "--organization",
        help="Organization id (takes precedence over CONTENTFUL_ORGANIZATION_ID)",
    )
    parser.add_argument(
        "--base-url",
        help="API base URL (takes precedence over CONTENTFUL_BASE_URL)",
    )
    parser.add_argument(
        "--environment",
        help="Environment id (takes precedence over CONTENTFUL_ENVIRONMENT)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every request and response body",
    )
    parser.add_argument("--log-file", help="Also append logs to this file")
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        help="Log record format (default: from config file, else text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"contentful-converge version {__version__}",
    )
    return parser


def load_attributes(path: str) -> dict[str, Any]:
    """Read a flat attribute mapping.  JSON is accepted as a YAML subset."""
    if path == "-":
        text = sys.stdin.read()
    else:
        text = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError(f"Attributes in {path} must be a mapping")
    return data


def resolve_config(args: argparse.Namespace) -> tuple[Config, UnifiedConfig]:
    """Merge CLI > env vars (.env loaded first) > YAML config > defaults.

    Raises:
        ValueError: Missing or invalid configuration.
    """
    load_dotenv()

    unified = UnifiedConfig()
    config_files = discover_config_files()
    if config_files:
        unified = build_config(load_hierarchical_config())
        logger.info("Configuration file: %s", config_files[0])

    config = load_config(
        cma_token=args.token,
        organization_id=args.organization,
        base_url=args.base_url,
        environment=args.environment,
        debug=args.debug,
        yaml_fallbacks=unified.fallbacks(),
    )
    return config, unified


def main(argv: list[str] | None = None) -> int:
    """Run one operation.  Returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config, unified = resolve_config(args)
    except (ValueError, ValidationError) as e:
        _stderr_print(f"ERROR: Configuration error: {e}")
        return 1

    setup_logging(
        debug=config.debug,
        log_file=args.log_file or unified.logging.file,
        debug_format=args.log_format or unified.logging.format,
        level=unified.logging.level,
    )

    try:
        raw = load_attributes(args.file)
    except (OSError, ValueError, yaml.YAMLError) as e:
        _stderr_print(f"ERROR: Cannot read attributes: {e}")
        return 1

    provider = Provider(config)
    try:
        result = provider.apply(args.operation, args.resource_type, raw)
    except ValidationError as e:
        output = {
            "attributes": raw,
            "diagnostics": [
                d.model_dump(mode="json") for d in format_attribute_errors(args.resource_type, e)
            ],
        }
        print(json.dumps(output, indent=2))
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 1 if result.has_error else 0


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        _stderr_print("\nInterrupted.")
        sys.exit(130)


if __name__ == "__main__":
    run()
