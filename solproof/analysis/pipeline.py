"""
Audit orchestration: dependency-ordered concurrent stages.

    fetch:     program image | transactions | SOL price
    derive:    binary profile | token decimals
    analyze:   economics | call graph | vulnerabilities | authorities | fees | idl | upgrades
    fuse:      governance | behavior | safety | deep dive | risk list
    predict:   risk prediction
    compose:   report

Every stage runs through run_stage(): a timeout or error degrades only that
stage to its neutral fallback (computed=False) and the report lists it under
metadata.degradedSections. Only a malformed program address or timeframe
aborts the run.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from solproof.analysis.authority import analyze_authorities
from solproof.analysis.behavior import infer_behavior, neutral_behavior
from solproof.analysis.binary_profiler import neutral_profile, profile_binary
from solproof.analysis.call_graph import build_call_graph, empty_call_graph
from solproof.analysis.deep_dive import deep_dive
from solproof.analysis.economics import (
    aggregate_economics,
    collect_token_mints,
    neutral_economic_profile,
    resolve_token_decimals,
)
from solproof.analysis.fee_analyzer import analyze_fees
from solproof.analysis.governance import infer_governance, neutral_governance
from solproof.analysis.idl import generate_idl
from solproof.analysis.models import DeepDiveResult, FeeAnalysis, ProgramIdl
from solproof.analysis.program_fetcher import ProgramImage, fetch_program_image
from solproof.analysis.report import AuditReport, ReportInputs, compose_report, fallback_report
from solproof.analysis.risk_assessor import assess_risks
from solproof.analysis.risk_predictor import neutral_prediction, predict_risk
from solproof.analysis.safety import assess_safety, neutral_safety
from solproof.analysis.transaction_classifier import (
    DEFAULT_CLASSIFICATION_POLICY,
    ClassificationPolicy,
    fetch_and_classify,
    parse_timeframe,
)
from solproof.analysis.upgrade_history import upgrade_history
from solproof.analysis.vulnerability_scanner import scan_vulnerabilities
from solproof.chain.source import ChainDataSource, PriceOracle, StaticPriceOracle
from solproof.config import PipelineConfig
from solproof.config.env import DEFAULT_SOL_PRICE_USD
from solproof.core.stages import StageResult, run_stage
from solproof.solproof_logging import bind_program
from solproof.utils import validate_address


@dataclass(frozen=True)
class AuditRun:
    """Every stage result of one audit invocation plus the composed report."""

    address: str
    report: AuditReport
    stages: dict[str, StageResult[Any]] = field(default_factory=dict)

    @property
    def degraded_sections(self) -> list[str]:
        return [name for name, res in self.stages.items() if res.degraded]

    def stage(self, name: str) -> StageResult[Any]:
        return self.stages[name]

    def value(self, name: str) -> Any:
        return self.stages[name].value

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "stages": {name: res.to_dict() for name, res in self.stages.items()},
            "report": self.report.to_dict(),
        }


async def run_audit(
    address: str,
    source: ChainDataSource,
    *,
    config: PipelineConfig | None = None,
    price_oracle: PriceOracle | None = None,
    classification_policy: ClassificationPolicy = DEFAULT_CLASSIFICATION_POLICY,
    now: float | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> AuditRun:
    """
    Run the full audit for one program.

    Raises InputValidationError for a malformed address or timeframe before
    any fetch.
    Otherwise always returns an AuditRun with a report.
    """
    program = validate_address(address)
    cfg = config or PipelineConfig()
    parse_timeframe(cfg.fetch.timeframe)
    oracle = price_oracle or StaticPriceOracle(DEFAULT_SOL_PRICE_USD)
    ts = time.time() if now is None else now
    log = bind_program(program)
    timeout = cfg.stage_timeout_sec
    log.info("audit_started", limit=cfg.fetch.limit, timeframe=cfg.fetch.timeframe)

    stages: dict[str, StageResult[Any]] = {}

    def record(*results: StageResult[Any]) -> None:
        for r in results:
            stages[r.stage] = r

    image_res, tx_res, price_res = await asyncio.gather(
        run_stage(
            "program", fetch_program_image, source, program,
            fallback=ProgramImage.missing(program), timeout_sec=timeout,
        ),
        run_stage(
            "transactions", fetch_and_classify, source, program, cfg.fetch,
            policy=classification_policy, now=ts, sleep=sleep,
            fallback=[], timeout_sec=cfg.fetch_stage_timeout_sec,
        ),
        run_stage("price", oracle.sol_price_usd, fallback=DEFAULT_SOL_PRICE_USD, timeout_sec=timeout),
    )
    record(image_res, tx_res, price_res)
    image: ProgramImage = image_res.value
    classified = tx_res.value

    if image_res.degraded:
        profile_res: StageResult[Any] = StageResult(
            "binary",
            neutral_profile(program, image.candidate_authorities),
            computed=False,
            error=f"program image unavailable: {image_res.error}",
        )
        decimals_res = await run_stage(
            "token_decimals", resolve_token_decimals, source, collect_token_mints(classified),
            fallback={}, timeout_sec=timeout,
        )
    else:
        profile_res, decimals_res = await asyncio.gather(
            run_stage(
                "binary", profile_binary, image.data, program, image.candidate_authorities,
                fallback=neutral_profile(program, image.candidate_authorities),
            ),
            run_stage(
                "token_decimals", resolve_token_decimals, source, collect_token_mints(classified),
                fallback={}, timeout_sec=timeout,
            ),
        )
    record(profile_res, decimals_res)
    profile = profile_res.value

    econ_res, graph_res, vuln_res, auth_res, fee_res, idl_res, upgrades_res = await asyncio.gather(
        run_stage(
            "economics", aggregate_economics, classified, program, decimals_res.value,
            fallback=neutral_economic_profile(),
        ),
        run_stage("call_graph", build_call_graph, classified, program, fallback=empty_call_graph(program)),
        run_stage("vulnerabilities", scan_vulnerabilities, profile, fallback=[]),
        run_stage(
            "authorities", analyze_authorities, source, profile.candidate_authorities, ts,
            fallback=[], timeout_sec=timeout,
        ),
        run_stage("fees", analyze_fees, classified, fallback=FeeAnalysis(computed=False)),
        run_stage("idl", generate_idl, profile, classified, fallback=ProgramIdl(computed=False)),
        run_stage("upgrades", upgrade_history, classified, fallback=()),
    )
    record(econ_res, graph_res, vuln_res, auth_res, fee_res, idl_res, upgrades_res)
    economics, graph, authorities = econ_res.value, graph_res.value, auth_res.value

    gov_res, behavior_res, safety_res, dive_res, risks_res = await asyncio.gather(
        run_stage("governance", infer_governance, authorities, graph, fallback=neutral_governance()),
        run_stage("behavior", infer_behavior, profile, economics, fallback=neutral_behavior()),
        run_stage("safety", assess_safety, profile, authorities, economics, graph, fallback=neutral_safety()),
        run_stage("deep_dive", deep_dive, profile, classified, economics, fallback=DeepDiveResult(computed=False)),
        run_stage("risks", assess_risks, profile, vuln_res.value, fallback=()),
    )
    record(gov_res, behavior_res, safety_res, dive_res, risks_res)

    prediction_res = await run_stage(
        "prediction", predict_risk, authorities, economics, safety_res.value, fallback=neutral_prediction()
    )
    record(prediction_res)

    degraded = [name for name, res in stages.items() if res.degraded]
    for res in stages.values():
        degradation = res.as_degradation()
        if degradation is not None:
            log.warning("stage_fallback_used", stage=degradation.stage, reason=degradation.reason)
    generated_at = datetime.fromtimestamp(ts, tz=timezone.utc)
    inputs = ReportInputs(
        address=program,
        profile=profile,
        economics=economics,
        graph=graph,
        authorities=authorities,
        governance=gov_res.value,
        vulnerabilities=vuln_res.value,
        safety=safety_res.value,
        behavior=behavior_res.value,
        prediction=prediction_res.value,
        fees=fee_res.value,
        deep_dive=dive_res.value,
        assessed_risks=risks_res.value,
        idl=idl_res.value,
        upgrades=upgrades_res.value,
        sol_price_usd=float(price_res.value),
        degraded_sections=tuple(degraded),
        network=cfg.network,
    )
    report_res = await run_stage(
        "report", compose_report, inputs, generated_at,
        fallback=fallback_report(program, generated_at, network=cfg.network, degraded_sections=degraded),
    )
    record(report_res)

    log.info(
        "audit_completed",
        safety_score=report_res.value.safety_score,
        degraded_sections=degraded,
        transaction_count=len(classified),
    )
    return AuditRun(address=program, report=report_res.value, stages=stages)
