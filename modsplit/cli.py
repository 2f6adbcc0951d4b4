"""CLI entrypoints for modsplit commands."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from .categorizers import available_policies, build_categorizer
from .config import ConfigError, ModSplitConfig, load_config
from .errors import SplitError, UnsplittableModuleError
from .logging import configure_logging, get_logger
from .matcher import TestHooks
from .orchestrator import Orchestrator, build_llm_oracle, split_filename


def _add_logging_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    # Subparsers suppress defaults so a flag given before the command survives.
    flag_default: object = argparse.SUPPRESS if suppress_default else False
    path_default: object = argparse.SUPPRESS if suppress_default else None
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=flag_default,
        help="Log per-statement decisions for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=flag_default,
        help="Only log warnings and errors (hides per-item progress).",
    )
    parser.add_argument(
        "--log-file",
        default=path_default,
        help="Also write a timestamped log to this file.",
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a .modsplit.yml file (defaults to the one next to the input file).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modsplit",
        description="Split an oversized JavaScript/TypeScript module into grouped files and a barrel index.",
    )
    _add_logging_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    split_parser = subparsers.add_parser(
        "split",
        help="Split a module into a directory of category files plus index.",
    )
    _add_logging_options(split_parser, suppress_default=True)
    _add_config_option(split_parser)
    split_parser.add_argument("path", help="Module file to split.")
    split_parser.add_argument(
        "--policy",
        default=None,
        help=f"Categorizer policy ({', '.join(available_policies())}).",
    )
    split_parser.add_argument(
        "--labels",
        default=None,
        help="Comma-separated category labels (closed and random policies).",
    )
    split_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random policy.",
    )
    split_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the planned files without writing them.",
    )

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Classify a module's statements and report anything that blocks a split.",
    )
    _add_logging_options(inspect_parser, suppress_default=True)
    _add_config_option(inspect_parser)
    inspect_parser.add_argument("path", help="Module file to inspect.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for modsplit commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(args.quiet),
        log_file=Path(args.log_file) if args.log_file else None,
    )
    logger = get_logger("cli")

    try:
        config = load_config(Path(args.config) if args.config else Path(args.path))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    orchestrator = Orchestrator(hooks=_hooks(config))

    if args.command == "inspect":
        _run_inspect(parser, orchestrator, Path(args.path))
    elif args.command == "split":
        settings = replace(config.categorize)
        if args.policy:
            settings.policy = args.policy.lower()
        if args.labels:
            settings.labels = [label.strip() for label in args.labels.split(",") if label.strip()]
        if args.seed is not None:
            settings.seed = args.seed

        def _progress(name: str, label: str) -> None:
            logger.info("%s -> %s", name, label)

        try:
            categorizer = build_categorizer(
                settings.policy,
                settings,
                oracle_factory=lambda: build_llm_oracle(config.llm),
            )
            outcome = orchestrator.run_split(
                args.path,
                categorizer,
                dry_run=bool(args.dry_run),
                on_progress=_progress,
            )
        except UnsplittableModuleError as exc:
            for failure in exc.failures:
                logger.error("- %s\n%s", failure.describe(), failure.statement.text)
            parser.exit(1, "modsplit split failed: unsupported statements in source file.\n")
        except (RuntimeError, ValueError, OSError) as exc:
            parser.exit(1, f"modsplit split failed: {exc}\nRun with --verbose for more details.\n")

        if outcome.dry_run:
            print("Planned files (dry-run):")
            for relative, contents in outcome.files.items():
                print(f"{relative} ({len(contents.splitlines())} lines)")
        else:
            print(f"Split into {len(outcome.categories)} category files under {_relativize(outcome.root)}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_inspect(parser: argparse.ArgumentParser, orchestrator: Orchestrator, path: Path) -> None:
    try:
        _, ext = split_filename(path)
        analysis = orchestrator.analyze(path.read_text(encoding="utf-8"), ext)
    except (SplitError, ValueError, OSError) as exc:
        parser.exit(1, f"modsplit inspect failed: {exc}\n")

    print(f"statements:  {len(analysis.module)}")
    print(f"imports:     {len(analysis.imports)}")
    print(f"items:       {len(analysis.items)}")
    print(f"tests:       {len(analysis.tests)}")
    print(f"unsupported: {len(analysis.failures)}")
    for failure in analysis.failures:
        print(f"- {failure.describe()}")
        print(failure.statement.text)
    if analysis.failures:
        parser.exit(1, "")


def _hooks(config: ModSplitConfig) -> TestHooks:
    tests = config.inline_tests
    return TestHooks(sentinel=tests.sentinel, group_hook=tests.group_hook, case_hook=tests.case_hook)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
