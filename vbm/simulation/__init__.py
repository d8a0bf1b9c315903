"""
Match Outcome Simulator: strength-weighted, seeded, best-of-five volleyball results.
"""
from .rng import SeededRNG
from .probability_engine import (
    MAX_STRENGTH,
    MIN_STRENGTH,
    ProbabilityEngine,
    sigmoid,
    validate_strength,
)
from .match_simulator import MatchSimulator, SimulatedResult, SETS_TO_WIN

__all__ = [
    "SeededRNG",
    "MAX_STRENGTH",
    "MIN_STRENGTH",
    "ProbabilityEngine",
    "sigmoid",
    "validate_strength",
    "MatchSimulator",
    "SimulatedResult",
    "SETS_TO_WIN",
]
