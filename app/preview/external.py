import subprocess
from collections.abc import Sequence

from app.logging.logger import Log
from app.preview.exceptions import ExternalToolError


def run_tool(args: Sequence[str], timeout_seconds: int) -> str:
    """Run an external converter and return its stdout.

    Raises:
        ExternalToolError: if the binary is missing, exits non-zero, or runs
            longer than ``timeout_seconds``.
    """
    Log.debug(f"Running {' '.join(args)}")
    try:
        completed = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            timeout=timeout_seconds,
            check=True,
        )
    except FileNotFoundError as exc:
        raise ExternalToolError(f"{args[0]} is not installed") from exc
    except subprocess.TimeoutExpired as exc:
        raise ExternalToolError(f"{args[0]} timed out after {timeout_seconds}s") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise ExternalToolError(
            f"{args[0]} exited with status {exc.returncode}: {stderr}"
        ) from exc
    return completed.stdout
