"""
Fatal error types raised inside the plan executor and returned as result-level errors.
"""


class BoardPulseError(Exception):
    """Base class for errors that abort a plan run."""


class ConfigurationError(BoardPulseError):
    """A required board id or credential is not configured."""


class CollaboratorError(BoardPulseError):
    """The board-fetch collaborator reported a failure."""
