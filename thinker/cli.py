"""
CLI entry point: argument parsing, main execution flow and exit statuses.
"""

import argparse
import logging

from .cli_display import StatusPrinter, setup_logging
from .colors import COLOR_PRESETS, THEME_PRESETS, resolve_colors
from .config import Config
from .discovery import find_target, read_version
from .engine.patch_editor import PatchOptions
from .errors import ExitStatus, ThinkerError
from .pipeline import Patcher, check_outcomes

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thinker",
        description="Thinker: keep Claude Code's thinking panel visible and colour it",
    )
    parser.add_argument("--dry-run", action="store_true",
                        help="Detect, edit and verify in memory without writing")
    parser.add_argument("--restore", action="store_true",
                        help="Restore the target from its backup")
    parser.add_argument("--check", action="store_true",
                        help="Only report whether the target is patchable")
    parser.add_argument("--debug", action="store_true",
                        help="Show debug logging on the console")
    parser.add_argument("--color", default=None,
                        help="Header colour: preset (" + ", ".join(COLOR_PRESETS)
                             + ") or hex such as #ff69b4")
    parser.add_argument("--content-color", default=None,
                        help="Thinking text colour (defaults to --color)")
    parser.add_argument("--theme", default=None,
                        help="Header and content colour pair: " + ", ".join(THEME_PRESETS))
    parser.add_argument("--target", default=None,
                        help="Path to cli.js (skips auto-discovery)")
    parser.add_argument("--config", default=None,
                        help="Path to .thinker.yaml config file")
    return parser


def _run(args, printer: StatusPrinter) -> int:
    # ── 0. Load config ──
    cfg = Config.load(args.config)
    setup_logging(args.debug, cfg.LOG_DIR)

    # ── 1. Validate colours before touching the target ──
    header_color, content_color = resolve_colors(
        args.theme or cfg.THEME or None,
        args.color or cfg.COLOR or None,
        args.content_color or cfg.CONTENT_COLOR or None,
    )
    options = PatchOptions(
        header_color=header_color,
        content_color=content_color,
        content_window=cfg.CONTENT_WINDOW,
    )

    # ── 2. Locate the target ──
    target = find_target(args.target or cfg.TARGET or None)
    printer.info(f"Target: {target}")
    patcher = Patcher(target, options, cfg)

    if args.restore:
        if args.dry_run:
            printer.info(f"[DRY RUN] Would restore from {patcher.backup}")
        else:
            patcher.restore()
            printer.success(f"Restored from {patcher.backup}")
            printer.info("Restart Claude Code for changes to take effect.")
        return ExitStatus.SUCCESS

    source = patcher.load()
    printer.info(f"Version: {read_version(source)}")

    # ── 3. Detect ──
    matches = patcher.detect()
    printer.sites(matches)
    if header_color or content_color:
        printer.info(f"Colors: header {header_color or 'default'}, "
                     f"content {content_color or 'default'}")

    if args.check:
        check_outcomes(matches)
        printer.success("Version is patchable")
        return ExitStatus.SUCCESS

    # ── 4. Plan + verify ──
    plan = patcher.plan()
    for label in plan.labels:
        printer.success(label)
    checks = patcher.verify()
    printer.success("Patches confirmed: " + ", ".join(checks))

    # ── 5. Write ──
    if args.dry_run:
        printer.info("Dry run complete. Run without --dry-run to apply patches.")
        return ExitStatus.SUCCESS

    patcher.write()
    printer.success("Patches applied successfully")
    printer.info("Restart Claude Code for changes to take effect.")
    return ExitStatus.SUCCESS


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    printer = StatusPrinter()
    try:
        return int(_run(args, printer))
    except ThinkerError as exc:
        logger.debug("Aborted: %r", exc)
        printer.failure(str(exc))
        for failure in getattr(exc, "failures", ()):
            printer.failure(f"  {failure}")
        return int(exc.exit_status)


if __name__ == "__main__":
    raise SystemExit(main())
