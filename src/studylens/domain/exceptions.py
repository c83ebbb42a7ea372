class StudylensError(Exception):
    """Base class for errors raised by studylens."""


class EventStoreError(StudylensError):
    """An event store could not read or write a user's history."""
