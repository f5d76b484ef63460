"""
Pipeline Errors
===============

Only two failure kinds are raised by the pipeline:

- UpstreamUnavailable: an event store read failed or timed out. The whole
  graph build aborts, nothing is cached, the caller decides between retry
  and serving a stale profile.
- InvalidSubject: the caller asked for a subject that does not exist or
  cannot exist (unknown draft id, unknown subject kind, malformed key).

Insufficient data is never an exception: detectors report a None metric
and a has_*_data flag instead.
"""


class DecisionIntelError(Exception):
    """Base class for pipeline errors."""
    pass


class UpstreamUnavailable(DecisionIntelError):
    """Raised when an event store read fails or times out."""

    def __init__(self, operation: str, reason: str = ""):
        self.operation = operation
        self.reason = reason
        message = f"Event store read '{operation}' failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidSubject(DecisionIntelError):
    """Raised when a graph is requested for an unknown or malformed subject."""

    def __init__(self, subject_kind: str, subject_key, reason: str = "unknown subject"):
        self.subject_kind = subject_kind
        self.subject_key = subject_key
        self.reason = reason
        super().__init__(f"Invalid {subject_kind} subject {subject_key!r}: {reason}")
