"""Logging configuration for vmnetconf.

Provides:
- File-based logging with rotation
- Console output for interactive use
- Timing of every file read on a separate performance logger

Environment Variables:
    VMNETCONF_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    VMNETCONF_LOG_FILE: Path to log file (default: ~/.vmnetconf/vmnetconf.log)
    VMNETCONF_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    VMNETCONF_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from vmnetconf.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("read_network_map")
    def read_network_map(handle):
        ...

    with timed_section("replay", source="networking"):
        ...
"""
import functools
import logging
import os
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Optional

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("vmnetconf.perf")
main_logger = logging.getLogger("vmnetconf")


def get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("VMNETCONF_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file() -> Path:
    """Get log file path from environment."""
    default_path = Path.home() / ".vmnetconf" / "vmnetconf.log"
    path_str = os.environ.get("VMNETCONF_LOG_FILE", str(default_path))
    return Path(path_str)


def setup_logging(level: Optional[int] = None, log_to_file: bool = True) -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler (INFO+ by default, respects VMNETCONF_LOG_LEVEL)
    - File handler with rotation (DEBUG level - captures everything)
    - Performance logger for timing metrics

    Args:
        level: Console level, overriding VMNETCONF_LOG_LEVEL
        log_to_file: Set to False to skip the rotating file handlers
    """
    log_level = level if level is not None else get_log_level()

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-28s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    perf_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | PERF | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(main_format)

    main_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    main_logger.handlers.clear()
    main_logger.addHandler(console_handler)

    perf_logger.setLevel(logging.DEBUG)
    perf_logger.handlers.clear()
    perf_logger.propagate = False
    perf_logger.addHandler(console_handler)

    if log_to_file:
        log_file = get_log_file()
        max_size_mb = int(os.environ.get("VMNETCONF_LOG_MAX_SIZE", "10"))
        backup_count = int(os.environ.get("VMNETCONF_LOG_BACKUPS", "5"))

        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(main_format)
        main_logger.addHandler(file_handler)

        # Separate file for easy analysis
        perf_log_file = log_file.parent / "vmnetconf-perf.log"
        perf_handler = RotatingFileHandler(
            perf_log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        )
        perf_handler.setLevel(logging.DEBUG)
        perf_handler.setFormatter(perf_format)
        perf_logger.addHandler(perf_handler)

        main_logger.debug(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")


def _source_name(args: tuple) -> str:
    """Best-effort name of the file handle passed to a reader."""
    if args:
        name = getattr(args[0], "name", None)
        if isinstance(name, (str, os.PathLike)):
            return str(name)
    return "N/A"


def timed(operation: str, source: Optional[str] = None):
    """Decorator to log execution time of a reader.

    Args:
        operation: Name of the operation (e.g., "read_network_map")
        source: Optional source label (inferred from the handle's `name`)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            label = source or _source_name(args)

            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000  # ms
                perf_logger.debug(
                    f"{operation:30s} | {label:30s} | {elapsed:8.2f}ms | OK"
                )
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(
                    f"{operation:30s} | {label:30s} | {elapsed:8.2f}ms | FAIL: {e}"
                )
                raise

        return wrapper

    return decorator


@contextmanager
def timed_section(operation: str, source: Optional[str] = None, **extra):
    """Context manager for timing code sections.

    Usage:
        with timed_section("load_networking", source=str(path)):
            ...
    """
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""

    try:
        yield
        elapsed = (time.perf_counter() - start) * 1000
        msg = f"{operation:30s} | {source or 'N/A':30s} | {elapsed:8.2f}ms | OK"
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.debug(msg)
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        msg = f"{operation:30s} | {source or 'N/A':30s} | {elapsed:8.2f}ms | FAIL: {e}"
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.warning(msg)
        raise
