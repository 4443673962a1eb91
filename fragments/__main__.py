"""Fragments CLI — inspect supported formats and run conversions locally.

Usage:
    python -m fragments formats TYPE              List extensions TYPE converts to
    python -m fragments check-type TYPE           Exit 0 if TYPE is supported
    python -m fragments convert PATH --type TYPE --to EXT [--output PATH]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from fragments import formats
from fragments.config.settings import get_settings
from fragments.converter import convert
from fragments.exceptions import ConversionError
from fragments.utils.logging import configure_logging

logger = structlog.get_logger()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fragments",
        description="Fragments — format registry and converter tools",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: FRAGMENTS_LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # formats
    fmt = subparsers.add_parser(
        "formats", help="List the extensions a type can be converted to"
    )
    fmt.add_argument("type", help="Content-Type, e.g. text/markdown")

    # check-type
    check = subparsers.add_parser(
        "check-type", help="Exit 0 if a Content-Type is supported, 1 otherwise"
    )
    check.add_argument("type", help="Content-Type, e.g. 'text/plain; charset=utf-8'")

    # convert
    conv = subparsers.add_parser("convert", help="Convert a local file")
    conv.add_argument("path", type=Path, help="File to convert")
    conv.add_argument(
        "--type", dest="source_type", required=True, help="Content-Type of the file"
    )
    conv.add_argument("--to", dest="target", required=True, help="Target extension")
    conv.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the result here instead of stdout",
    )

    return parser.parse_args(argv)


def _cmd_formats(args: argparse.Namespace) -> int:
    """Print the convertible extensions, one per line."""
    if not formats.is_supported_type(args.type):
        print(f"Unsupported type: {args.type}", file=sys.stderr)
        return 1
    base, _ = formats.parse_media_type(args.type)
    for extension in formats.supported_formats(base):
        print(extension)
    return 0


def _cmd_check_type(args: argparse.Namespace) -> int:
    supported = formats.is_supported_type(args.type)
    print("supported" if supported else "unsupported")
    return 0 if supported else 1


async def _cmd_convert(args: argparse.Namespace) -> int:
    """Run the converter on a file and write the result."""
    if not formats.is_supported_type(args.source_type):
        print(f"Unsupported type: {args.source_type}", file=sys.stderr)
        return 1

    base, _ = formats.parse_media_type(args.source_type)
    target = formats.normalize_extension(args.target)
    if target not in formats.supported_formats(base):
        print(f"Cannot convert {base} to {target}", file=sys.stderr)
        return 1

    try:
        data = args.path.read_bytes()
    except OSError as exc:
        print(f"Cannot read {args.path}: {exc.strerror}", file=sys.stderr)
        return 1

    try:
        result = await convert(data, args.source_type, target)
    except ConversionError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    if args.output is not None:
        args.output.write_bytes(result)
        logger.info(
            "Conversion written",
            path=str(args.output),
            mime_type=formats.mime_type_for(target),
            size=len(result),
        )
    else:
        sys.stdout.buffer.write(result)
        sys.stdout.buffer.flush()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    configure_logging(
        json_output=settings.log_json,
        level=args.log_level or settings.log_level,
        stream=sys.stderr,
    )

    if args.command == "formats":
        return _cmd_formats(args)
    elif args.command == "check-type":
        return _cmd_check_type(args)
    elif args.command == "convert":
        return asyncio.run(_cmd_convert(args))
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
