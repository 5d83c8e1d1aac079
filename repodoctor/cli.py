"""CLI entrypoints for repodoctor commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .logging import configure_logging
from .models import CATEGORIES, DoctorOptions
from .orchestrator import Doctor
from .reporting import render_json, render_rules, render_score, render_text
from .rules import discover_rules

FAILING_SCORE = 50


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Show file details per rule and debug logging.",
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


def _add_category_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--category",
        choices=CATEGORIES,
        default=None,
        help="Run only one rule category.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repodoctor",
        description="Diagnose and fix common issues in JavaScript/TypeScript projects.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check",
        help="Run the rule set against a project and report a health score.",
    )
    _add_verbose_option(check_parser, suppress_default=True)
    _add_category_option(check_parser)
    check_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    check_parser.add_argument(
        "--project",
        default=None,
        help="Only scan monorepo workspaces whose name or path contains this value.",
    )
    check_parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON.")
    check_parser.add_argument(
        "--score",
        action="store_true",
        help="Print only the score; exit 1 when the grade is failing.",
    )
    check_parser.add_argument("--fix", action="store_true", help="Apply all available auto-fixes.")
    check_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what --fix would do without changing files.",
    )
    check_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Evaluate rules on this many threads.",
    )

    rules_parser = subparsers.add_parser("rules", help="List the available rules.")
    _add_verbose_option(rules_parser, suppress_default=True)
    _add_category_option(rules_parser)
    rules_parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON.")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP diagnosis service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repodoctor commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    verbose = bool(args.verbose)
    configure_logging(verbose=verbose, log_file=args.log_file)

    if args.command == "check":
        _run_check(parser, args, verbose)
    elif args.command == "rules":
        categories = [args.category] if args.category else None
        sys.stdout.write(render_rules(discover_rules(categories=categories), as_json=bool(args.json)))
    elif args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_check(parser: argparse.ArgumentParser, args: argparse.Namespace, verbose: bool) -> None:
    options = DoctorOptions(
        fix=bool(args.fix),
        dry_run=bool(args.dry_run),
        category=args.category,
        project=args.project,
        workers=args.workers,
    )
    try:
        result = Doctor().run(args.path, options)
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except Exception as exc:  # pragma: no cover - defensive guard
        parser.exit(1, f"repodoctor check failed: {exc}\nRun with --verbose for more details.\n")

    if args.score:
        sys.stdout.write(render_score(result, as_json=bool(args.json)))
        if result.score < FAILING_SCORE:
            parser.exit(1)
        return
    if args.json:
        sys.stdout.write(render_json(result))
    else:
        sys.stdout.write(render_text(result, verbose=verbose, dry_run=options.dry_run))


if __name__ == "__main__":  # pragma: no cover
    main()
