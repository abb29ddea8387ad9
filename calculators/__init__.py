from .cancellation import CancellationCalculator
from .delay import DelayCalculator
from .denied_boarding import DeniedBoardingCalculator
from .dispatcher import EligibilityEngine, check_eligibility, default_engine, reset_default_engine
from .downgrade import DowngradeCalculator

__all__ = [
    "CancellationCalculator",
    "DelayCalculator",
    "DeniedBoardingCalculator",
    "DowngradeCalculator",
    "EligibilityEngine",
    "check_eligibility",
    "default_engine",
    "reset_default_engine",
]
