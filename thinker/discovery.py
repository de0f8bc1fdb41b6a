"""
Target discovery: locates the installed Claude Code ``cli.js`` bundle.
"""

import logging
import os
import re
import shutil
import subprocess

from .errors import TargetNotFoundError

logger = logging.getLogger(__name__)

PACKAGE_PATH = os.path.join("@anthropic-ai", "claude-code", "cli.js")

_VERSION_RE = re.compile(rb"// Version: ([\d.]+)")


def _run(cmd: list[str]) -> tuple[bool, str]:
    """Run a command and return ``(success, stdout)``."""
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=False,
            timeout=15,
        )
        return result.returncode == 0, result.stdout.strip()
    except (OSError, subprocess.SubprocessError) as e:
        return False, str(e)


def _from_claude_binary() -> str | None:
    """``cli.js`` next to the resolved ``claude`` executable."""
    binary = shutil.which("claude")
    if not binary:
        return None
    return os.path.join(os.path.dirname(os.path.realpath(binary)), "cli.js")


def _from_npm_root() -> str | None:
    ok, output = _run(["npm", "root", "-g"])
    if not ok or not output:
        return None
    return os.path.join(output.splitlines()[-1].strip(), PACKAGE_PATH)


def _local_installs() -> list[str]:
    home = os.path.expanduser("~")
    return [
        os.path.join(home, ".claude", "local", "node_modules", PACKAGE_PATH),
        os.path.join(home, ".config", "claude", "local", "node_modules", PACKAGE_PATH),
    ]


def candidate_paths():
    """Yield every location worth probing, in priority order."""
    for probe in (_from_claude_binary, _from_npm_root):
        path = probe()
        if path:
            yield path
    yield from _local_installs()


def find_target(explicit: str | None = None) -> str:
    """
    Return the path of the bundle to patch.

    An explicit path (``--target``, config or ``THINKER_TARGET``) wins and
    must exist.  Otherwise the usual install locations are probed.
    """
    if explicit:
        path = os.path.abspath(os.path.expanduser(explicit))
        if not os.path.isfile(path):
            raise TargetNotFoundError(f"Target file not found: {path}")
        return path

    tried = []
    for path in candidate_paths():
        tried.append(path)
        if os.path.isfile(path):
            logger.debug("Found target at %s", path)
            return path

    raise TargetNotFoundError(
        "Could not find Claude Code installation (tried: "
        + (", ".join(tried) or "nothing") + "). Use --target to point at cli.js."
    )


def read_version(source: bytes) -> str:
    """Version banner of the bundle, or ``unknown``."""
    match = _VERSION_RE.search(source)
    return match.group(1).decode("ascii") if match else "unknown"
