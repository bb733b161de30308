"""
Host-side wrappers around the Token Mill core
"""

from .mill_engine import MillEngine, VestingPlanRef

__all__ = ["MillEngine", "VestingPlanRef"]
