"""
Resynx Exceptions - Caller Contract Violations
==============================================

This module defines the exceptions raised when a resource or observable is used
out of order or misconfigured.

Data-layer failures (a fetcher raising, a stream emitting an error) never show up
here: they are captured into the ``ResourceError`` state and only surface when a
consumer reads the state through an unsafe accessor.

Hierarchy:
- DomainError
  - ConfigurationError - bad driver combination at construction
  - InvalidStateError  - operation called in the wrong lifecycle phase
  - ProjectionError    - exhaustive projection of an unresolved state
"""


class DomainError(Exception):
    """Base class for every error raised by resynx itself."""

    pass


class ConfigurationError(DomainError):
    """
    Raised when a resource is constructed with neither or both of
    ``fetcher`` and ``stream``.
    """


class InvalidStateError(DomainError):
    """
    Raised when an operation is invoked in a lifecycle phase that does not
    allow it, e.g. resolving twice or refetching a stream-driven resource.
    """


class ProjectionError(DomainError):
    """
    Raised when an unresolved state is projected exhaustively.

    Consumers are expected to only project a resource after ``resolve()``.
    """
