import logging
from logging.handlers import RotatingFileHandler
import os
from typing import Optional

# Track if Sentry has been initialized (global singleton)
_sentry_initialized = False


def init_sentry(
    dsn: str,
    environment: str = "development",
    traces_sample_rate: float = 1.0,
) -> bool:
    """
    Initialize the Sentry SDK once for the whole process.

    Args:
        dsn (str): Sentry DSN. An empty DSN disables error tracking.
        environment (str): Sentry environment name (development/production).
        traces_sample_rate (float): Performance monitoring sample rate (0.0 to 1.0).

    Returns:
        bool: True if Sentry was initialized by this call, False otherwise.
    """
    global _sentry_initialized

    if _sentry_initialized or not dsn:
        return False

    import sentry_sdk
    from sentry_sdk.integrations.asyncio import AsyncioIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration

    sentry_logging = LoggingIntegration(
        level=logging.INFO,  # breadcrumbs
        event_level=logging.ERROR,
    )

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=traces_sample_rate,
        integrations=[sentry_logging, AsyncioIntegration()],
    )

    _sentry_initialized = True
    return True


def setup_logger(
    name: str,
    log_file: str,
    level: int = logging.INFO,
    sentry_tag: Optional[str] = None,
) -> logging.Logger:
    """
    Sets up a logger that writes to a rotating file and to the console.

    Log lines carry the timestamp, logger name, level and message. When
    Sentry is active the component is tagged with ``sentry_tag`` so events
    can be filtered per component.

    Args:
        name (str): The name of the logger.
        log_file (str): The file path where the log messages will be written.
        level (int, optional): The logging level. Defaults to logging.INFO.
        sentry_tag (str, optional): Component tag used in Sentry (e.g. "delivery").

    Returns:
        logging.Logger: The configured logger instance.
    """
    if sentry_tag and _sentry_initialized:
        import sentry_sdk

        sentry_sdk.set_tag("component", sentry_tag)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Loggers are module-level singletons; never stack handlers on re-import
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger
