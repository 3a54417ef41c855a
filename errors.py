class FinanceError(Exception):
    """Base class for failures surfaced by the finance core."""


class StoreUnavailable(FinanceError):
    """The record store could not be reached or timed out."""


class NotFound(FinanceError, ValueError):
    pass


class ValidationError(FinanceError, ValueError):
    pass


class DataIntegrityError(FinanceError):
    """A stored record cannot be aggregated, e.g. its date does not parse."""
