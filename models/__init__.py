from .schemas import (
    AlternativeFlight,
    CabinClass,
    CarrierSize,
    DelayReasonAnalysis,
    DeniedBoardingType,
    DisruptionRecord,
    DisruptionType,
    DistanceTier,
    EligibilityDecisionLog,
    EligibilityResult,
    ExtraordinaryCategory,
    ExtraordinaryVerdict,
    NoticePeriod,
    Regulation,
)

__all__ = [
    "AlternativeFlight",
    "CabinClass",
    "CarrierSize",
    "DelayReasonAnalysis",
    "DeniedBoardingType",
    "DisruptionRecord",
    "DisruptionType",
    "DistanceTier",
    "EligibilityDecisionLog",
    "EligibilityResult",
    "ExtraordinaryCategory",
    "ExtraordinaryVerdict",
    "NoticePeriod",
    "Regulation",
]
