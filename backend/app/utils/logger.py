"""
Logger — Console and file logging for the application.
Writes to stdout and to LOG_DIR/server.log.
"""
import logging
import os

from app.config import get_settings

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s: %(message)s"
_configured = False


def setup_logging() -> None:
    """Attach console and file handlers to the `app` logger once."""
    global _configured
    if _configured:
        return
    settings = get_settings()

    root = logging.getLogger("app")
    root.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    formatter = logging.Formatter(_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    try:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(settings.LOG_DIR, "server.log"))
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
    except OSError as e:
        root.warning("File logging disabled: %s", e)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
