"""Common utilities and types for cluster infrastructure automation."""

import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Result returned by an action."""
    success: bool
    message: str = ''
    duration: float = 0.0
    context_updates: dict = field(default_factory=dict)
    stage: str = ''


def run_command(
    cmd: list[str],
    cwd: Optional[Path] = None,
    timeout: int = 600,
    capture: bool = True,
    env: Optional[dict] = None
) -> tuple[int, str, str]:
    """Run a command and return (returncode, stdout, stderr).

    The environment is passed through untouched and never logged, it may
    carry credentials.
    """
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=capture,
            text=True,
            timeout=timeout,
            env=env,
            check=False  # We handle return codes explicitly
        )
        return result.returncode, result.stdout, result.stderr
    except subprocess.TimeoutExpired:
        return -1, '', f'Command timed out after {timeout}s'
    except OSError as e:
        return -1, '', str(e)


def parse_json_output(out: str) -> Any:
    """Parse JSON printed by an external tool.

    Raises:
        ValueError: If output is empty or not valid JSON
    """
    if not out.strip():
        raise ValueError("empty output")
    try:
        return json.loads(out)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid JSON output: {e}") from e
