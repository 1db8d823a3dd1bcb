"""Exception hierarchy for the survey SDK.

Errors that describe a bad request from the caller (an illegal transition,
an answer of the wrong shape, an unknown session) also subclass
``ValueError`` so the HTTP layer's ``ValueError`` handler maps them without
knowing the SDK types.
"""


class SurveyError(Exception):
    """Base class for all SDK errors."""


class InvalidTransitionError(SurveyError, ValueError):
    """A transition was requested that the current view does not allow."""


class AnswerTypeError(SurveyError, ValueError):
    """A raw answer could not be coerced to the question's declared type."""


class SessionNotFoundError(SurveyError, ValueError):
    """No survey session exists for the given identifier."""


class StorageUnavailableError(SurveyError):
    """Local key-value storage is disabled, full, or unreadable."""


class GatewayError(SurveyError):
    """The remote store failed to answer a query or accept a write."""
