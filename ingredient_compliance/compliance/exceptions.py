"""
Exceptions raised by the compliance engine.

"Ingredient not found" is a normal outcome and never raises. These errors
mean the reference data needed to decide is missing, so the whole label
check is rejected.
"""


class ComplianceError(Exception):
    """Base exception for compliance engine errors."""

    pass


class SnapshotUnavailableError(ComplianceError):
    """No reference snapshot is loaded, or the supplier failed to provide one."""

    pass


class SnapshotStaleError(SnapshotUnavailableError):
    """The loaded reference snapshot is older than the configured maximum age."""

    pass


class MissingReferenceBodyError(SnapshotUnavailableError):
    """A required reference body is absent from the snapshot or empty."""

    def __init__(self, body: str, reason: str = "missing"):
        self.body = body
        self.reason = reason
        super().__init__(f"Reference body '{body}' is {reason}")
