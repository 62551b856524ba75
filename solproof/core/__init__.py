"""
Core utilities: exceptions and the stage runner shared by every pipeline stage.
"""

from solproof.core.exceptions import (
    AnalysisDegradation,
    ConfigurationError,
    InputValidationError,
    RpcResponseError,
    SolproofError,
    TransientFetchError,
)
from solproof.core.stages import StageResult, run_stage

__all__ = [
    "AnalysisDegradation",
    "ConfigurationError",
    "InputValidationError",
    "RpcResponseError",
    "SolproofError",
    "TransientFetchError",
    "StageResult",
    "run_stage",
]
