import logging
import os
import sys
from datetime import datetime

from .engine.disambiguator import SiteMatch, SiteStatus


def setup_logging(debug: bool = False, log_dir: str = "") -> logging.Logger:
    """Attach console (and optionally file) handlers to the package logger."""
    logger = logging.getLogger("thinker")
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console handler, warnings only unless --debug
    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(logging.DEBUG if debug else logging.WARNING)
    ch.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.addHandler(ch)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = os.path.join(log_dir, f"thinker_{timestamp}.log")

        # File handler captures everything
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"
        ))
        logger.addHandler(fh)

    return logger


class StatusPrinter:
    """Prints the user-facing status lines of one run."""

    ICONS = {
        "ok":      "✔",
        "failed":  "✘",
        "skipped": "–",
        "info":    "○",
        "warn":    "!",
    }

    C_CYAN   = "\033[38;5;81m"
    C_GREEN  = "\033[38;5;114m"
    C_RED    = "\033[38;5;203m"
    C_YELLOW = "\033[38;5;221m"
    C_DIM    = "\033[38;5;243m"
    C_RESET  = "\033[0m"

    _STATUS_STYLE = {
        SiteStatus.DETECTED:         ("info", C_CYAN),
        SiteStatus.ALREADY_PATCHED:  ("ok", C_GREEN),
        SiteStatus.NOT_FOUND:        ("skipped", C_DIM),
        SiteStatus.PATTERN_MISMATCH: ("warn", C_YELLOW),
        SiteStatus.AMBIGUOUS:        ("failed", C_RED),
    }

    def __init__(self, stream=None, color: bool | None = None):
        self.stream = stream or sys.stdout
        if color is None:
            color = hasattr(self.stream, "isatty") and self.stream.isatty()
        self.color = color

    def _paint(self, code: str, text: str) -> str:
        return f"{code}{text}{self.C_RESET}" if self.color else text

    def line(self, kind: str, message: str, code: str = "") -> None:
        icon = self.ICONS.get(kind, "?")
        prefix = self._paint(code, icon) if code else icon
        print(f"{prefix} {message}", file=self.stream)

    def info(self, message: str) -> None:
        self.line("info", message, self.C_DIM)

    def success(self, message: str) -> None:
        self.line("ok", message, self.C_GREEN)

    def failure(self, message: str) -> None:
        self.line("failed", message, self.C_RED)

    def site(self, match: SiteMatch) -> None:
        kind, code = self._STATUS_STYLE[match.status]
        text = f"{match.site}: {match.status.value}"
        if match.detail:
            text += f" ({match.detail})"
        self.line(kind, text, code)

    def sites(self, matches: dict[str, SiteMatch]) -> None:
        for match in matches.values():
            self.site(match)
