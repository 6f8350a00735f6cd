import logging

from devforum.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging():
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.LOG_LEVEL)

    # Avoid stacking handlers when the app module is reloaded
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)

    for logger_name in ["uvicorn", "uvicorn.error", "fastapi", "devforum"]:
        logging.getLogger(logger_name).setLevel(settings.LOG_LEVEL)
