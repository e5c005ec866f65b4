import os
import logging
from logging.handlers import TimedRotatingFileHandler

from clinic_copilot.core.config import settings


def get_logger(name: str = "clinic_copilot"):
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # If no handlers are attached, add console + timed rotating file handler
    if not logger.handlers:
        console = logging.StreamHandler()
        console.setLevel(logging.DEBUG)
        console_fmt = logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
            "%Y-%m-%d %H:%M:%S"
        )
        console.setFormatter(console_fmt)
        logger.addHandler(console)

        # Rotates at midnight, keeps 7 days of logs
        log_dir = settings.LOG_DIR
        os.makedirs(log_dir, exist_ok=True)

        log_path = os.path.join(log_dir, f"{name}.log")
        file_handler = TimedRotatingFileHandler(
            filename=log_path,
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
            utc=False
        )
        file_handler.suffix = "%Y-%m-%d"
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(console_fmt)
        logger.addHandler(file_handler)

    return logger
