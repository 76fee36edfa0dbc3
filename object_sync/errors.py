"""
Exceptions raised while handling admin submissions.
"""


class ObjectSyncError(Exception):
    """Base class for errors raised by this package."""


class ValidationError(ObjectSyncError):
    """A submitted form is missing a required field or names an unknown method."""

    def __init__(self, message: str, fields=None):
        super().__init__(message)
        self.fields = list(fields or [])


class PersistenceFailure(ObjectSyncError):
    """The mapping store rejected a create, update or delete."""
