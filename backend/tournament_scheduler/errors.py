"""
Schedule errors.

Every failure is scoped to one tournament's schedule and is reported back to
the action that triggered it; nothing here is retried automatically.
"""


class ScheduleError(Exception):
    """Base class for schedule generation / binding failures"""

    status_code = 400


class InvalidFormatError(ScheduleError):
    """Tournament format has no schedule generator (e.g. league)"""

    status_code = 422


class PreconditionFailedError(ScheduleError):
    """Operation is not allowed in the schedule's current state"""

    status_code = 409


class PartialWriteFailure(ScheduleError):
    """A store write failed mid-operation; the operation was rolled back"""

    status_code = 500


class DegenerateInputError(ScheduleError, ValueError):
    """Generator input cannot produce a bracket (fewer than two teams, above the cap, ...)"""

    status_code = 422


class NotFoundError(ScheduleError):
    """Tournament, team or schedule link does not exist"""

    status_code = 404
