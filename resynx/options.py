"""
Resynx Options - Construction-Time Configuration
================================================

Plain dataclasses that configure observables and resources when they are
created. Options are read once at construction and never mutated afterwards.

Example:
    ```python
    from resynx import ResourceOptions, create_resource

    user = create_resource(
        fetcher=fetch_user,
        options=ResourceOptions(name="user", guard_stale_fetches=False),
    )
    ```
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SignalOptions:
    """
    Options shared by every observable value.

    Attributes:
        name: Label used in ``repr`` and log messages.
        equals: When True, ``set`` skips notification if the new value
            compares equal (``==``) to the current one. When False every
            ``set`` notifies.
    """

    name: Optional[str] = None
    equals: bool = False


@dataclass(frozen=True)
class ResourceOptions(SignalOptions):
    """
    Options for a Resource.

    Attributes:
        guard_stale_fetches: Stamp each fetch with a generation number and let
            only the most recently started fetch commit its result. Set to
            False for last-settlement-wins behavior, where a slow stale fetch
            may overwrite a newer result.
    """

    guard_stale_fetches: bool = True
