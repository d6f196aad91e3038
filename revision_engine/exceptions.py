"""Error kinds raised by the revision engine.

Numeric input problems are clamped rather than raised; only identity
lookups, illegal state transitions and structurally unusable input raise.
"""


class RevisionError(Exception):
    """Base class for every error raised by the engine"""


class ValidationError(RevisionError):
    """Attempt data that cannot be clamped to a safe default (e.g. no competence)"""


class NotFoundError(RevisionError):
    """No revision record with the requested id"""

    def __init__(self, revision_id):
        self.revision_id = revision_id
        super().__init__(f"Revision {revision_id} not found")


class InvalidTransitionError(NotFoundError):
    """The record exists but is already completed or cancelled.

    Subclasses NotFoundError because callers look for an *open* revision by id.
    """

    def __init__(self, revision_id, status):
        self.status = status
        RevisionError.__init__(self, f"Revision {revision_id} is already {status}")
        self.revision_id = revision_id


class InvalidDateError(RevisionError):
    """Postponement target date is not in the future"""

    def __init__(self, new_date, today):
        self.new_date = new_date
        self.today = today
        super().__init__(f"Cannot postpone to {new_date}: date must be after {today}")
