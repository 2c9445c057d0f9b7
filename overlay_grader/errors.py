"""
Exception taxonomy for the Overlay Grader system.
"""


class GradingConfigError(ValueError):
    """The grading configuration is invalid. Always fatal for the run."""


class BuilderError(RuntimeError):
    """A build, lint, test or mutation-test invocation failed."""


class BuildError(BuilderError):
    """A build tool exited with a non-zero status."""


class ToolTimeoutError(BuilderError):
    """A build tool exceeded its per-phase timeout."""


class GradingServerError(RuntimeError):
    """The grading server reported a recoverable error."""


class NonRetriableError(Exception):
    """An error that must not be retried by the retry executor."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause
