"""
Stage execution with timeout and neutral fallback.

run_stage() is the single boundary where stage failures are caught: a
timeout or exception is logged and turned into a StageResult carrying the
stage's fallback value with computed=False, so one failing stage only
degrades its own section of the report.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

import structlog

from solproof.core.exceptions import AnalysisDegradation
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """
    Output of one pipeline stage.

    computed is False when value is the stage's neutral fallback; error then
    holds the reason. A value that carries its own computed=False flag (e.g. a
    neutral BinaryProfile) also yields computed=False here.
    """

    stage: str
    value: T
    computed: bool = True
    error: str | None = None

    @property
    def degraded(self) -> bool:
        return not self.computed

    def as_degradation(self) -> AnalysisDegradation | None:
        if self.computed:
            return None
        return AnalysisDegradation(self.stage, self.error or "fallback value used")

    def to_dict(self) -> dict[str, Any]:
        return {"stage": self.stage, "computed": self.computed, "error": self.error}


async def run_stage(
    stage: str,
    fn: Callable[..., Any],
    *args: Any,
    fallback: T,
    timeout_sec: float | None = None,
    **kwargs: Any,
) -> StageResult[T]:
    """
    Run fn(*args, **kwargs) (sync or async) and wrap the outcome.

    Async results are bounded by timeout_sec. Any exception or timeout yields
    StageResult(stage, fallback, computed=False, error=...). CancelledError
    propagates. The stage name is bound to every record logged while fn runs.
    """
    with structlog.contextvars.bound_contextvars(stage=stage):
        try:
            result = fn(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await asyncio.wait_for(result, timeout=timeout_sec)
        except asyncio.TimeoutError:
            logger.warning("stage_timeout", timeout_sec=timeout_sec)
            return StageResult(stage, fallback, computed=False, error=f"timed out after {timeout_sec}s")
        except Exception as e:
            logger.warning("stage_degraded", error=str(e), error_type=type(e).__name__)
            return StageResult(stage, fallback, computed=False, error=str(e) or type(e).__name__)

    if getattr(result, "computed", True) is False:
        return StageResult(stage, result, computed=False, error="stage returned neutral fallback")
    return StageResult(stage, result)
