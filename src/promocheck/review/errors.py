"""Exceptions raised by review collaborators.

Parse mismatches, unresolvable report links and missing members are not
exceptions: the field validator turns them into verdicts. Only the two
I/O failures below cross a collaborator boundary, and the review engine
catches both.
"""


class ReviewError(Exception):
    """Base class for review collaborator failures."""


class NetworkError(ReviewError):
    """Fetching messages from Discord failed after all retries or timed out."""


class AnnotationWriteError(ReviewError):
    """Discord rejected the edit that writes annotated labels back to a request."""
