import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fintrack.core import settings
from fintrack.errors import ConsistencyError
from fintrack.logger import get_logger
from fintrack.storage.database import READ_ONLY_OPTION

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = settings.DEFAULT_RETRY_ATTEMPTS
    wait: float = settings.DEFAULT_RETRY_WAIT
    max_wait: float = settings.DEFAULT_RETRY_MAX_WAIT

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            attempts=settings.STORAGE_RETRY_ATTEMPTS,
            wait=settings.STORAGE_RETRY_WAIT,
            max_wait=settings.STORAGE_RETRY_MAX_WAIT,
        )


class UnitOfWork:
    """
    Runs a piece of work inside one database transaction.

    Either everything the work wrote is committed or nothing is. Transient
    storage failures (``OperationalError``: locked database, dropped
    connection) roll back the whole unit and retry it from scratch with
    exponential backoff. Errors raised by the work itself propagate unchanged
    and are never retried.
    """

    def __init__(self, session_factory: sessionmaker, retry_policy: RetryPolicy | None = None):
        self.session_factory = session_factory
        self.retry_policy = retry_policy or RetryPolicy.from_settings()

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.retry_policy.attempts),
            wait=wait_exponential(
                multiplier=self.retry_policy.wait,
                max=self.retry_policy.max_wait,
            ),
            retry=retry_if_exception_type(OperationalError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _execute(self, work: Callable[[Session], T]) -> T:
        with self.session_factory.begin() as session:
            return work(session)

    def run(self, operation: str, work: Callable[[Session], T]) -> T:
        try:
            return self._retrying()(self._execute, work)
        except OperationalError as exc:
            logger.error(
                "[DB] %s failed after %d attempt(s), rolled back: %s",
                operation,
                self.retry_policy.attempts,
                exc.orig or exc,
            )
            raise ConsistencyError(f"{operation} failed: storage unavailable") from exc
        except SQLAlchemyError as exc:
            logger.error("[DB] %s failed, rolled back: %s", operation, exc)
            raise ConsistencyError(f"{operation} failed: {exc.__class__.__name__}") from exc

    def read(self, work: Callable[[Session], T]) -> T:
        with self.session_factory() as session:
            session.connection(execution_options={READ_ONLY_OPTION: True})
            return work(session)
