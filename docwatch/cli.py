"""CLI entrypoints for docwatch commands."""

from __future__ import annotations

import argparse
import sys
import threading
from dataclasses import replace
from pathlib import Path
from typing import Callable

from .config import THRESHOLD_PRESETS, ConfigError, TriggerConfig, WatchConfig, load_config, resolve_threshold
from .diff import compute_line_diff
from .generator import MarkdownGenerator
from .llm.runner import LLMRunner
from .logging import configure_logging, get_logger
from .models import ChangeEvent, ChangeKind, GenerationResult
from .scanner import read_text
from .trigger import TriggerController
from .watcher import ChangeWatcher

logger = get_logger("cli")


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _threshold(value: str) -> int:
    resolved = resolve_threshold(value)
    if resolved is None:
        presets = ", ".join(f"{name} ({lines})" for name, lines in THRESHOLD_PRESETS.items())
        raise argparse.ArgumentTypeError(f"expected a positive line count or one of: {presets}")
    return resolved


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docwatch",
        description="Regenerate per-file documentation as source files change.",
    )
    _add_verbose_option(parser)
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    watch_parser = subparsers.add_parser(
        "watch",
        help="Watch a directory and document files once enough lines change.",
    )
    _add_verbose_option(watch_parser, suppress_default=True)
    watch_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory to watch (defaults to current directory).",
    )
    watch_parser.add_argument(
        "--threshold",
        type=_threshold,
        default=None,
        help="Changed lines before documenting: a number or tiny/small/medium/big.",
    )
    watch_parser.add_argument(
        "--generate-on-create",
        action="store_true",
        default=None,
        help="Document new files immediately.",
    )
    watch_parser.add_argument("--debounce-ms", type=int, default=None, help="Quiet period before generating.")
    watch_parser.add_argument("--cooldown-ms", type=int, default=None, help="Minimum gap between generations per file.")
    watch_parser.add_argument(
        "--serve",
        action="store_true",
        help="Expose the HTTP control surface while watching.",
    )
    watch_parser.add_argument("--port", type=int, default=8765, help="Port for --serve.")

    document_parser = subparsers.add_parser(
        "document",
        help="Regenerate documentation for one file right away.",
    )
    _add_verbose_option(document_parser, suppress_default=True)
    document_parser.add_argument("file", help="Source file to document.")
    document_parser.add_argument(
        "notes",
        nargs="*",
        help="Optional free-text guidance for the generator.",
    )

    diff_parser = subparsers.add_parser(
        "diff",
        help="Show positional line statistics between two files.",
    )
    _add_verbose_option(diff_parser, suppress_default=True)
    diff_parser.add_argument("old", type=Path)
    diff_parser.add_argument("new", type=Path)

    return parser


def _apply_overrides(config: TriggerConfig, args: argparse.Namespace) -> TriggerConfig:
    overrides = {}
    if args.threshold is not None:
        overrides["change_threshold"] = args.threshold
    if args.generate_on_create is not None:
        overrides["generate_on_create"] = True
    if args.debounce_ms is not None and args.debounce_ms > 0:
        overrides["debounce_ms"] = args.debounce_ms
    if args.cooldown_ms is not None and args.cooldown_ms > 0:
        overrides["cooldown_ms"] = args.cooldown_ms
    if not overrides:
        return config
    return replace(config, **overrides)


def _build_runner(config: WatchConfig) -> LLMRunner:
    llm = config.llm
    if llm is None:
        return LLMRunner()
    kwargs = {
        "model": llm.model,
        "base_url": llm.base_url,
        "api_key": llm.api_key,
    }
    if llm.temperature is not None:
        kwargs["temperature"] = llm.temperature
    if llm.max_tokens is not None:
        kwargs["max_tokens"] = llm.max_tokens
    if llm.request_timeout is not None:
        kwargs["request_timeout"] = llm.request_timeout
    return LLMRunner(**kwargs)


def _report_result(result: GenerationResult) -> None:
    name = Path(result.file_path).name
    if result.success:
        logger.info("Auto-generated docs for %s", name)
    else:
        logger.warning("Auto-doc failed for %s: %s", name, result.error_message)


def _log_event(forward: Callable[[ChangeEvent], None]) -> Callable[[ChangeEvent], None]:
    def _callback(event: ChangeEvent) -> None:
        if event.kind is ChangeKind.CREATED:
            lines = f" ({event.lines_changed} lines)" if event.lines_changed is not None else ""
            logger.info("New file created%s: %s", lines, event.name)
        elif event.kind is ChangeKind.MODIFIED:
            if event.lines_changed is not None:
                logger.info(
                    "File saved: %s (+%d -%d, %d changed)",
                    event.name,
                    event.lines_added or 0,
                    event.lines_deleted or 0,
                    event.lines_changed,
                )
            else:
                logger.info("File saved: %s", event.name)
        else:
            logger.info("New directory created: %s", event.name)
        forward(event)

    return _callback


def _run_watch(args: argparse.Namespace) -> None:
    config = load_config(Path(args.path))
    trigger_config = _apply_overrides(config.trigger, args)
    controller = TriggerController(
        trigger_config,
        MarkdownGenerator(_build_runner(config)),
        _report_result,
    )
    watcher = ChangeWatcher(config.root, _log_event(controller.create_watcher_callback()))
    watcher.start()
    logger.info(
        "Documenting after %d changed lines (debounce %dms, cooldown %dms)",
        trigger_config.change_threshold,
        trigger_config.debounce_ms,
        trigger_config.cooldown_ms,
    )
    try:
        if args.serve:
            from .service import run_service

            run_service(controller, port=args.port)
        else:
            threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()
        controller.close(wait=False)


def _run_document(args: argparse.Namespace) -> int:
    target = Path(args.file).expanduser().resolve()
    if not target.is_file():
        raise FileNotFoundError(f"File not found: {args.file}")
    config = load_config(Path.cwd())
    controller = TriggerController(config.trigger, MarkdownGenerator(_build_runner(config)), lambda _: None)
    try:
        result = controller.document_file(str(target), " ".join(args.notes) or None)
    finally:
        controller.close()
    if result.success:
        print(f"Documentation written to {_relativize(Path(result.output_location or target))}")
        return 0
    print(f"Documentation failed for {target.name}: {result.error_message}", file=sys.stderr)
    return 1


def _run_diff(args: argparse.Namespace) -> int:
    old = read_text(args.old)
    new = read_text(args.new)
    if old is None or new is None:
        missing = args.old if old is None else args.new
        raise FileNotFoundError(f"Unable to read {missing}")
    diff = compute_line_diff(old, new)
    print(f"{diff.total} lines changed (+{diff.added} -{diff.deleted})")
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docwatch commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        if args.command == "watch":
            _run_watch(args)
            status = 0
        elif args.command == "document":
            status = _run_document(args)
        elif args.command == "diff":
            status = _run_diff(args)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except (ConfigError, FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    if status:
        parser.exit(status)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
