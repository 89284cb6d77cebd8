import os

import uvicorn

from fintrack.app import create_app
from fintrack.core import settings
from fintrack.logger import get_logging_config

app = create_app()


def run() -> None:
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=get_logging_config(db_echo=settings.get_env_bool("DB_ECHO")),
    )


if __name__ == "__main__":
    run()
