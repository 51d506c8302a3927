"""
Base Service.

Shared plumbing for note, auth and user services: a session handle,
a module-scoped logger, translation of SQLAlchemy failures into
application errors, and small input checks that Pydantic cannot
express (blank-after-strip, policy-driven lengths).

Usage:
    class NoteService(BaseService):
        def __init__(self, session: AsyncSession) -> None:
            super().__init__(session)
            self.repo = NoteRepository(session)
"""

from collections.abc import Awaitable
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.backend.core.exceptions import (
    ConflictError,
    DatabaseError,
    ValidationError,
)
from notekeeper.backend.core.logging import get_logger

T = TypeVar("T")


class BaseService:
    """
    Parent of every service.

    Subclasses call super().__init__(session) and build their
    repositories on the same session so one request is one unit of work.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._logger = get_logger(self.__class__.__module__)

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def _execute_db_operation(self, operation: str, coro: Awaitable[T]) -> T:
        """
        Await a repository call, mapping driver errors to application errors.

        Raises:
            ConflictError: On a unique constraint violation
            DatabaseError: On any other SQLAlchemy failure
        """
        try:
            return await coro
        except IntegrityError as e:
            self._logger.warning(
                "Integrity error",
                extra={"operation": operation, "error": str(e.orig)},
            )
            message = str(e.orig).lower()
            if "unique" in message or "duplicate" in message:
                raise ConflictError("Resource already exists") from e
            raise DatabaseError(f"Constraint violated during {operation}") from e
        except SQLAlchemyError as e:
            self._logger.error(
                "Database failure",
                extra={"operation": operation, "error": str(e)},
            )
            raise DatabaseError(f"Database unavailable during {operation}") from e

    def _validate_required(self, fields: dict[str, Any], field_names: list[str]) -> None:
        """Reject names whose value is None or only whitespace."""
        blank = [
            name
            for name in field_names
            if fields.get(name) is None
            or (isinstance(fields[name], str) and not fields[name].strip())
        ]
        if blank:
            raise ValidationError(
                "Required fields are blank",
                details={"missing_fields": blank},
            )

    def _validate_string_length(
        self,
        value: str,
        field_name: str,
        min_length: int | None = None,
        max_length: int | None = None,
    ) -> None:
        if min_length is not None and len(value) < min_length:
            raise ValidationError(
                f"{field_name} must be at least {min_length} characters",
                details={field_name: {"min_length": min_length}},
            )
        if max_length is not None and len(value) > max_length:
            raise ValidationError(
                f"{field_name} must be at most {max_length} characters",
                details={field_name: {"max_length": max_length}},
            )

    def _log_operation(self, operation: str, **context: Any) -> None:
        self._logger.info(operation, extra={"service": self.__class__.__name__, **context})

    def _log_debug(self, message: str, **context: Any) -> None:
        self._logger.debug(message, extra={"service": self.__class__.__name__, **context})
