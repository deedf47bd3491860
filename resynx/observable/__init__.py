"""
Resynx Observable - Reactive Value Primitives
=============================================
"""

from .subscription import Subscription
from .value import ObservableValue, observable

__all__ = ["ObservableValue", "Subscription", "observable"]
