class ClubError(Exception):
    pass


# ---------------------------------------------------------
# Input validation
# ---------------------------------------------------------

class ValidationError(ClubError, ValueError):
    pass


class InvalidMatchError(ValidationError):
    pass


class InvalidSelectionError(ValidationError):
    pass


class SelectionRequiredError(ValidationError):
    """
    Raised when a ball is offered while the engine still waits for a
    striker, non-striker or bowler.
    """

    def __init__(self, missing: str):
        super().__init__(f"Selection required before the next ball: {missing}")
        self.missing = missing


# ---------------------------------------------------------
# State machine
# ---------------------------------------------------------

class StageError(ClubError):
    pass


class MatchFinishedError(StageError):
    pass


class NothingToUndoError(ClubError):
    pass


# ---------------------------------------------------------
# Finance / import
# ---------------------------------------------------------

class InsufficientBalanceError(ClubError):
    pass


class ImportRecordError(ClubError):
    pass
