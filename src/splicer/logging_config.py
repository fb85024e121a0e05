"""
Loguru setup for the library and the CLI.

Console output goes to stderr so stdout stays free for JSON results. It is
off in machine mode (SPLICER_MACHINE_MODE). The file sink under
.splicer/logs/ is opt-in via SPLICER_FILE_LOGGING. SPLICER_LOG_LEVEL sets
the console level when the caller does not.
"""

import os
import sys
from typing import Optional

from loguru import logger

from splicer.config import LOGGING_CONFIG

_configured = False


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes")


def _add_console_sink(level: str) -> None:
    logger.add(sys.stderr, level=level, format=LOGGING_CONFIG["console_format"], colorize=True)


def _add_file_sink() -> None:
    # Imported here: paths reads the working directory, which tests move
    from splicer.paths import get_paths

    paths = get_paths()
    paths.ensure_dirs()
    logger.add(
        paths.logs_dir / LOGGING_CONFIG["file_name"],
        level=LOGGING_CONFIG["file_level"],
        rotation=LOGGING_CONFIG["rotation"],
        retention=LOGGING_CONFIG["retention"],
        catch=True,
    )


def setup_logging(
    level: Optional[str] = None,
    suppress_console: Optional[bool] = None,
    enable_file_logging: Optional[bool] = None,
    force: bool = False,
) -> None:
    """
    Replace the loguru sinks with splicer's.

    Runs once unless force is set; the CLI forces it after reading its
    global flags. None arguments fall back to the environment.
    """
    global _configured
    if _configured and not force:
        return
    _configured = True

    if level is None:
        level = os.getenv("SPLICER_LOG_LEVEL", "INFO").upper()
    if suppress_console is None:
        suppress_console = _env_flag("SPLICER_MACHINE_MODE")
    if enable_file_logging is None:
        enable_file_logging = _env_flag("SPLICER_FILE_LOGGING")

    logger.remove()
    if not suppress_console:
        _add_console_sink(level)
    if enable_file_logging:
        _add_file_sink()


setup_logging()
