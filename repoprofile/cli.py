"""CLI entrypoints for repoprofile commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from .config import ConfigError, ProfileConfig, ProfilingOptions, load_config
from .logging import configure_logging
from .models import to_jsonable
from .organization import OrganizationProfiler, ProfilingError
from .walker import resolve_repository


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_scan_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum directory depth to traverse (default 5).",
    )
    parser.add_argument(
        "--max-files",
        type=int,
        default=None,
        help="Maximum number of files to analyze per repository (default 1000).",
    )
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=None,
        help="Wall-clock budget in milliseconds; files not reached in time are skipped.",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable result caching for this run.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a .repoprofile.yml file (defaults to the first repository).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repoprofile",
        description="Profile repositories for languages, frameworks and team conventions.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan",
        help="Profile a single repository.",
    )
    _add_verbose_option(scan_parser, suppress_default=True)
    _add_scan_options(scan_parser)
    scan_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )

    org_parser = subparsers.add_parser(
        "org",
        help="Compare repositories; a single directory is searched for checkouts.",
    )
    _add_verbose_option(org_parser, suppress_default=True)
    _add_scan_options(org_parser)
    org_parser.add_argument("paths", nargs="+", help="Organization directory or repository paths.")

    compliance_parser = subparsers.add_parser(
        "compliance",
        help="Report standards compliance across repositories.",
    )
    _add_verbose_option(compliance_parser, suppress_default=True)
    compliance_parser.add_argument("paths", nargs="+", help="Repository paths.")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repoprofile commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
        return

    paths = [args.path] if args.command == "scan" else list(args.paths)
    config_source = getattr(args, "config", None) or paths[0]
    try:
        config = load_config(Path(config_source))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")
    profiler = OrganizationProfiler.from_config(config)

    try:
        if args.command == "scan":
            root = resolve_repository(args.path)
            result: Any = profiler.profile_repository(str(root), _options(config, args))
        elif args.command == "org":
            options = _options(config, args)
            if len(paths) == 1:
                result = profiler.analyze(paths[0], options)
            else:
                result = profiler.analyze_multiple_repositories(paths, options)
        elif args.command == "compliance":
            result = profiler.compare_standards_compliance(paths)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except ProfilingError as exc:
        parser.exit(1, f"repoprofile {args.command} failed: {exc}\n")

    print(json.dumps(to_jsonable(result), indent=2, sort_keys=True))


def _options(config: ProfileConfig, args: argparse.Namespace) -> ProfilingOptions:
    return config.options(
        max_depth=args.max_depth,
        max_files=args.max_files,
        timeout_ms=args.timeout_ms,
        cache_results=False if args.no_cache else None,
    )


if __name__ == "__main__":
    main(sys.argv[1:])
