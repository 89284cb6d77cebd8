import logging
import logging.config
import os

LOG_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILENAME = "fintrack.log"

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class ColourizedFormatter(logging.Formatter):
    """Colours the level name for terminal output."""

    RESET = "\x1b[0m"
    LEVEL_COLOURS = {
        logging.DEBUG: "\x1b[90m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31;1m",
    }

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelno)
        if colour is None:
            return super().format(record)
        # The file handler sees the same record, so colour a copy
        coloured = logging.makeLogRecord(record.__dict__)
        coloured.levelname = f"{colour}{record.levelname}{self.RESET}"
        return super().format(coloured)


def get_logging_config(db_echo: bool = False) -> dict:
    """
    dictConfig for the service, uvicorn included. With ``db_echo`` the
    SQL statements SQLAlchemy emits are logged at INFO through the same handlers.
    """
    log_dir = os.getenv("LOG_DIR")
    handlers: dict[str, dict] = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "colour",
        },
    }
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": os.path.join(log_dir, LOG_FILENAME),
            "formatter": "plain",
        }
    handler_names = list(handlers)

    loggers: dict[str, dict] = {
        "": {"handlers": handler_names, "level": os.getenv("LOG_LEVEL", "INFO").upper()},
        "sqlalchemy.engine": {"level": "INFO" if db_echo else "WARNING"},
    }
    for name in _UVICORN_LOGGERS:
        loggers[name] = {"handlers": handler_names, "level": "INFO", "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "colour": {"()": "fintrack.logger.ColourizedFormatter", "format": LOG_FORMAT},
            "plain": {"format": LOG_FORMAT},
        },
        "handlers": handlers,
        "loggers": loggers,
    }


def setup_logging(db_echo: bool = False) -> None:
    logging.config.dictConfig(get_logging_config(db_echo))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
