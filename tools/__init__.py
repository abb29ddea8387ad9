from .airport_directory import Airport, AirportDirectory
from .distance_tools import FALLBACK_DISTANCE_KM, DistanceCache, DistanceCalculator, DistanceResult, tier
from .llm_runtime import LLMResult, LLMRuntime, LLMUnavailableError

__all__ = [
    "Airport",
    "AirportDirectory",
    "FALLBACK_DISTANCE_KM",
    "DistanceCache",
    "DistanceCalculator",
    "DistanceResult",
    "tier",
    "LLMResult",
    "LLMRuntime",
    "LLMUnavailableError",
]
