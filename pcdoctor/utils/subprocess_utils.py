"""
Shared subprocess helpers for telemetry detection.

Every call is bounded by a timeout and returns None instead of raising,
so detectors decide for themselves whether a missing answer is fatal.
"""

import json
import platform
import re
import shutil
import subprocess
from typing import Any, List, Optional

from pcdoctor.utils.logger import log

DEFAULT_TIMEOUT_S = 15


def _creation_flags() -> int:
    if platform.system() == "Windows":
        return subprocess.CREATE_NO_WINDOW
    return 0


def run_command(args: List[str], timeout: float = DEFAULT_TIMEOUT_S) -> Optional[str]:
    """
    Run a command and return its stdout, or None on failure.

    Args:
        args: Command and arguments
        timeout: Seconds before the process is killed

    Returns:
        Stripped stdout when the command exits 0, otherwise None
    """
    if not args or shutil.which(args[0]) is None:
        log.debug(f"Command not found: {args[0] if args else '<empty>'}")
        return None
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=timeout,
            creationflags=_creation_flags(),
        )
    except subprocess.TimeoutExpired:
        log.warning(f"Command timed out after {timeout}s: {args[0]}")
        return None
    except OSError as e:
        log.debug(f"Command failed to start ({args[0]}): {e}")
        return None

    if result.returncode != 0:
        log.debug(f"{args[0]} exited with {result.returncode}: {result.stderr.strip()[:200]}")
        return None
    return result.stdout.strip()


def run_powershell(script: str, timeout: float = DEFAULT_TIMEOUT_S) -> Optional[str]:
    """Run a PowerShell snippet (Windows only). Returns stdout or None."""
    if platform.system() != "Windows":
        return None
    return run_command(
        ["powershell", "-NoProfile", "-NonInteractive", "-Command", script],
        timeout=timeout,
    )


def extract_number(output: Optional[str]) -> Optional[float]:
    """Return the first number found in command output."""
    if not output:
        return None
    match = re.search(r"-?\d+(?:\.\d+)?", output)
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def extract_json(output: Optional[str]) -> Any:
    """
    Parse JSON emitted by ConvertTo-Json.

    Returns None for empty or invalid output.
    """
    if not output:
        return None
    try:
        return json.loads(output)
    except json.JSONDecodeError as e:
        log.debug(f"Could not parse JSON output: {e}")
        return None


def as_list(data: Any) -> List[Any]:
    """ConvertTo-Json emits a bare object for single results; normalize to a list."""
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]
