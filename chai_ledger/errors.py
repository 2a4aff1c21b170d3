"""Exceptions raised for caller errors.

Malformed records never raise; these only cover misuse of the API
(unknown template, unreadable snapshot, reminder preconditions).
"""


class ChaiLedgerError(Exception):
    """Base class for chai_ledger errors."""
    pass


class UnknownTemplateError(ChaiLedgerError):
    """Raised when a report template name is not recognised."""
    pass


class SnapshotError(ChaiLedgerError):
    """Raised when a snapshot file cannot be read or decoded."""
    pass


class ReminderError(ChaiLedgerError):
    """Raised when a reminder cannot be drafted for a customer."""
    pass
