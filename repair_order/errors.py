"""Error types for the repair order workflow."""

from typing import Optional


class WorkflowError(Exception):
    """Base class for workflow errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class CatalogFetchError(WorkflowError):
    """A catalog service call failed."""

    def __init__(self, kind: str, cause: Exception):
        super().__init__(f"catalog fetch failed ({kind})", cause)
        self.kind = kind


class CustomerDirectoryError(WorkflowError):
    """The customer directory failed to search or create."""

    def __init__(self, cause: Exception):
        super().__init__("customer directory error", cause)


class StepValidationError(WorkflowError):
    """Required fields are missing at a step boundary."""

    def __init__(self, step: int, missing: list[str]):
        super().__init__(f"step {step} incomplete: missing {', '.join(missing)}")
        self.step = step
        self.missing = list(missing)


class InvalidArgumentError(WorkflowError):
    """Invalid argument provided by caller."""

    def __init__(self, message: str):
        super().__init__(f"invalid argument: {message}")


class SubmissionError(WorkflowError):
    """The order service rejected or failed a create/update."""

    def __init__(self, cause: Exception):
        super().__init__("order submission failed", cause)


class DraftLockedError(WorkflowError):
    """The draft was saved and can no longer be changed."""

    def __init__(self) -> None:
        super().__init__("order draft is saved and immutable")
