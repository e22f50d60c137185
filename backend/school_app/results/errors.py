from typing import List, Optional

from school_app import schemas


class ResultsError(Exception):
    """Base class for results-sheet failures that carry a user-facing message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LoadError(ResultsError):
    """The roster or reference data could not be fetched; dependent state is cleared."""


class FormatError(ResultsError):
    """An uploaded CSV is structurally invalid; the sheet is left untouched."""


class SaveError(ResultsError):
    """
    One or more writes failed during a save. Earlier writes stay persisted,
    so `sheet` holds every identity captured before and after the failures.
    """

    def __init__(
        self,
        message: str,
        failures: List[schemas.SaveFailure],
        sheet: Optional[schemas.ResultsSheet] = None,
    ):
        super().__init__(message)
        self.failures = failures
        self.sheet = sheet


class SaveInProgressError(ResultsError):
    """A save for the same selection is still running."""
