"""Exceptions raised across service boundaries."""


class ExternalServiceError(RuntimeError):
    """The vision service failed or returned an unusable response."""


class StorageError(RuntimeError):
    """Reading or writing the persisted key-value store failed."""


class LedgerNotReadyError(RuntimeError):
    """A ledger mutation ran before reconcile_day()."""


class NoPendingSelectionError(RuntimeError):
    """confirm_selection() was called without a pending candidate set."""


class InvalidSelectionError(ValueError):
    """The chosen candidate index is outside the pending candidate set."""
