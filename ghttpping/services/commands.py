import logging
import platform
import subprocess

from ghttpping.config import settings
from ghttpping.core.errors import CommandError

logger = logging.getLogger(__name__)

IS_WINDOWS = platform.system().lower() == "windows"


def decode_command_output(raw: bytes, encoding: str | None = None) -> str:
    """Decode raw command bytes before any line-based parsing.

    Windows tools print in the console's legacy codepage (cp932 on Japanese
    systems), so UTF-8 would mangle non-ASCII adapter names. Undecodable
    bytes are replaced rather than raising.
    """
    codec = encoding or settings.COMMAND_ENCODING
    try:
        return raw.decode(codec, errors="replace")
    except LookupError:
        logger.warning("Unknown codec %r, falling back to utf-8", codec)
        return raw.decode("utf-8", errors="replace")


def run_command(cmd: list[str], timeout: float | None = None) -> bytes:
    """Run a command with captured streams and no console window.

    Returns raw stdout. Raises CommandError when the command is missing,
    times out or exits non-zero.
    """
    name = cmd[0]
    kwargs: dict = {
        "capture_output": True,
        "timeout": timeout or settings.COMMAND_TIMEOUT,
        "stdin": subprocess.DEVNULL,
    }
    # Suppress console window popup on Windows; attribute doesn't exist on Linux
    if IS_WINDOWS and hasattr(subprocess, "CREATE_NO_WINDOW"):
        kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
    logger.debug("Running command: %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, **kwargs)
    except FileNotFoundError:
        raise CommandError(name, "command not available on this system")
    except subprocess.TimeoutExpired:
        raise CommandError(name, "timed out")
    except OSError as exc:
        raise CommandError(name, f"failed to run: {exc}")

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        logger.warning("%s exited with %d: %s", name, result.returncode, stderr or "<empty>")
        raise CommandError(name, f"exited with status {result.returncode}")
    return result.stdout
