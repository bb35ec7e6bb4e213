"""
Error taxonomy shared by the statement compiler, the HTTP routes and the
query façade.
"""


class QATrackerError(Exception):
    """Base class for every failure surfaced by the store layer"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(QATrackerError):
    """Caller omitted a required filter or sent an unusable request"""

    status_code = 400


class TransportError(QATrackerError):
    """Network or timeout failure between the façade and the server"""


class StoreError(QATrackerError):
    """The underlying statement failed (constraint, identifier, pool exhaustion)"""
