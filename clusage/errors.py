#region Imports
from typing import Optional
#endregion


#region Exceptions


class ClusageError(Exception):
    """Base class for errors the CLI reports to the user."""


class TerminalNotInteractiveError(ClusageError):
    """
    Raised when raw key capture is requested but stdin is not a TTY.

    The interactive viewer cannot run in that case; callers should fall back
    to a batch command instead.
    """

    def __init__(self, message: str = "stdin is not an interactive terminal"):
        super().__init__(message)


class HistoryReadFailure(ClusageError):
    """Raised when the history directory cannot be read at all."""

    def __init__(self, message: str, date: Optional[str] = None):
        super().__init__(message)
        self.date = date
#endregion
