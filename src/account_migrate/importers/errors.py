"""Import error kinds and error aggregation."""

from enum import Enum
from typing import Iterator, List, Optional


class ErrorKind(str, Enum):
    """Severity of an import error."""

    WARNING = 'warning'
    FATAL = 'fatal'


class MigrationError(Exception):
    """Base exception for import errors.

    Every error carries an explicit ``kind``. Plain ``MigrationError``
    instances are fatal.
    """

    kind = ErrorKind.FATAL

    def __init__(
        self,
        message: str,
        object_name: Optional[str] = None,
        source_id: Optional[str] = None,
        operation: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        """Initialize import error.

        Args:
            message: Human readable message
            object_name: Object type the error relates to
            source_id: ID of the item in the source account
            operation: Operation that failed (recreate, revert, confirm)
            cause: Underlying exception
        """
        super().__init__(message)
        self.message = message
        self.object_name = object_name
        self.source_id = source_id
        self.operation = operation
        self.cause = cause

    @property
    def is_warning(self) -> bool:
        return self.kind is ErrorKind.WARNING

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f'{self.message}: {self.cause}'


class MigrationWarning(MigrationError):
    """Expected, recoverable condition that must never abort a batch."""

    kind = ErrorKind.WARNING


class BatchFailure(MigrationError):
    """A batch operation collected at least one fatal error."""

    def __init__(self, group: 'ErrorGroup'):
        """Initialize batch failure.

        Args:
            group: Error group that contains the fatal errors
        """
        self.group = group
        self.errors = group.fatal_errors
        count = len(self.errors)
        lines = '\n'.join(f'  - {error}' for error in self.errors)
        super().__init__(
            f'{count} error{"s" if count != 1 else ""} occurred during import:\n{lines}'
        )

    def __str__(self) -> str:
        return self.message


class DependencyCycleError(MigrationError):
    """Object type dependencies form a cycle."""

    pass


class UnknownDependencyError(MigrationError):
    """An object type depends on a type that was never registered."""

    pass


def is_warning(error: BaseException) -> bool:
    """Check whether an error is a warning.

    Only errors tagged with ``ErrorKind.WARNING`` are warnings. Anything
    else, including unexpected runtime failures, is fatal.
    """
    return isinstance(error, MigrationError) and error.kind is ErrorKind.WARNING


class ErrorGroup:
    """Ordered collection of errors gathered during one batch operation."""

    def __init__(self) -> None:
        self._errors: List[BaseException] = []

    def add(self, error: BaseException) -> None:
        self._errors.append(error)

    @property
    def is_empty(self) -> bool:
        return not self._errors

    @property
    def errors(self) -> List[BaseException]:
        return list(self._errors)

    @property
    def warnings(self) -> List[BaseException]:
        return [e for e in self._errors if is_warning(e)]

    @property
    def fatal_errors(self) -> List[BaseException]:
        return [e for e in self._errors if not is_warning(e)]

    @property
    def has_fatal(self) -> bool:
        return any(not is_warning(e) for e in self._errors)

    def throw_if_not_empty(self) -> None:
        """Raise if the group contains at least one fatal error.

        A group with only warnings is not raised. Callers that want to
        surface warnings have to check ``is_empty`` themselves.

        Raises:
            BatchFailure: If a fatal error was collected
        """
        if self.has_fatal:
            raise BatchFailure(self)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return not self.is_empty

    def __iter__(self) -> Iterator[BaseException]:
        return iter(list(self._errors))

    def __str__(self) -> str:
        return '\n'.join(str(e) for e in self._errors)

    def __repr__(self) -> str:
        return (
            f'ErrorGroup(warnings={len(self.warnings)}, '
            f'fatal={len(self.fatal_errors)})'
        )
