"""
Domain errors raised by the tracker services.

Invalid set input (non-positive reps or weight) is not an exception: those
operations return False so callers can treat a rejected set as a no-op.
"""


class TrackerError(Exception):
    """Base class for errors raised by the tracker services"""


class PersistenceFailure(TrackerError):
    """A storage read or write failed"""


class IntegrityViolation(TrackerError):
    """An edit referenced an exercise or set that does not exist"""


class SessionStateError(TrackerError):
    """The operation is not allowed in the session's current state"""
