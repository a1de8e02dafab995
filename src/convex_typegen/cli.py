"""Command line interface for convex-typegen."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from convex_typegen.config import Configuration, load_configuration
from convex_typegen.errors import TypegenError
from convex_typegen.pipeline import (
    dump,
    generate,
    generate_from_extraction,
    read_extraction,
)

DEFAULT_CONFIG = Path("pyproject.toml")


def _stub(value: str) -> tuple[str, Path]:
    pattern, sep, path = value.partition("=")
    if not sep or not pattern or not path:
        raise argparse.ArgumentTypeError(f"expected PATTERN=PATH, got '{value}'")
    return pattern, Path(path)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="convex-typegen",
        description="Generate typed Rust bindings from a Convex schema and functions",
    )
    parser.add_argument(
        "functions",
        type=Path,
        nargs="*",
        help="Function documents (default: discovered beside the schema)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="pyproject.toml holding a [tool.convex-typegen] table "
        "(default: ./pyproject.toml when present)",
    )
    parser.add_argument(
        "--schema",
        type=Path,
        default=None,
        help="Schema document (default: convex/schema.ts)",
    )
    parser.add_argument(
        "-o", "--out",
        type=Path,
        default=None,
        help="Output file (default: src/convex_types.rs)",
    )
    parser.add_argument(
        "--functions-dir",
        type=Path,
        default=None,
        help="Directory scanned for function documents",
    )
    parser.add_argument(
        "--stub",
        type=_stub,
        action="append",
        default=[],
        metavar="PATTERN=PATH",
        help="Make the bindings of PATH visible to documents importing PATTERN",
    )
    parser.add_argument(
        "-j", "--jobs",
        type=int,
        default=None,
        help="Number of threads used to parse function documents",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--dump-json",
        action="store_true",
        help="Write the extracted schema and functions as JSON instead of Rust",
    )
    mode.add_argument(
        "--from-json",
        type=Path,
        default=None,
        metavar="FILE",
        help="Generate Rust from an extraction dump instead of parsing sources",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log per-document detail",
    )
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log errors",
    )
    return parser


def _configuration(args: argparse.Namespace) -> Configuration:
    if args.config is not None:
        config = load_configuration(args.config)
    elif DEFAULT_CONFIG.is_file():
        config = load_configuration(DEFAULT_CONFIG)
    else:
        config = Configuration()

    helper_stubs = None
    if args.stub:
        helper_stubs = {**config.helper_stubs, **dict(args.stub)}
    return config.with_overrides(
        schema_path=args.schema,
        out_file=args.out,
        function_paths=args.functions or None,
        functions_dir=args.functions_dir,
        helper_stubs=helper_stubs,
        jobs=args.jobs,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = _build_parser().parse_args(argv)

    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    if args.jobs is not None and args.jobs < 1:
        print("Error: --jobs must be at least 1", file=sys.stderr)
        return 1

    try:
        config = _configuration(args)
        if args.from_json is not None:
            text = read_extraction(args.from_json)
            generate_from_extraction(text, config.out_file)
        elif args.dump_json:
            dump(config)
        else:
            generate(config)
    except TypegenError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
