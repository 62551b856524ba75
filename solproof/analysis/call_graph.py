"""
Call graph reconstruction from transaction instructions.

Every instruction with at least two accounts adds an edge
accounts[0] -> accounts[1] labeled with the transaction kind. Parallel edges
and self-loops are kept: multiplicity is the signal. summarize_edges() is the
only place counts are merged.
"""

from __future__ import annotations

from typing import Iterable

from solproof.analysis.models import CallEdge, CallGraph, ClassifiedTransaction
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)

HIGH_COMPLEXITY_EDGES = 50
MODERATE_COMPLEXITY_EDGES = 20


def empty_call_graph(root: str) -> CallGraph:
    """Neutral graph for malformed input: no nodes, no edges, computed=False."""
    return CallGraph(root=root, computed=False)


def build_call_graph(classified: Iterable[ClassifiedTransaction], root: str) -> CallGraph:
    """
    Build the interaction multigraph rooted at the analyzed program.

    Nodes: root first, then endpoints in order of first appearance.
    Malformed transactions or instructions yield empty_call_graph(root).
    """
    nodes: dict[str, None] = {root: None}
    edges: list[CallEdge] = []
    try:
        for ctx in classified:
            action = ctx.kind.value
            for ix in ctx.transaction.instructions:
                accounts = ix.accounts
                if len(accounts) < 2:
                    continue
                source, target = accounts[0], accounts[1]
                if not isinstance(source, str) or not isinstance(target, str):
                    raise TypeError("instruction accounts must be addresses")
                edges.append(CallEdge(source=source, target=target, action=action, count=1))
                nodes.setdefault(source, None)
                nodes.setdefault(target, None)
    except (AttributeError, TypeError) as e:
        logger.warning("call_graph_failed", program=root, error=str(e))
        return empty_call_graph(root)

    logger.debug("call_graph_built", program=root, nodes=len(nodes), edges=len(edges))
    return CallGraph(root=root, nodes=tuple(nodes), edges=tuple(edges))


def summarize_edges(graph: CallGraph) -> list[CallEdge]:
    """Merge parallel (from, to, action) edges, summing counts; first-seen order."""
    merged: dict[tuple[str, str, str], int] = {}
    for e in graph.edges:
        key = (e.source, e.target, e.action)
        merged[key] = merged.get(key, 0) + e.count
    return [CallEdge(source=s, target=t, action=a, count=c) for (s, t, a), c in merged.items()]


def has_action(graph: CallGraph, action: str) -> bool:
    return any(e.action == action for e in graph.edges)


def interaction_complexity(graph: CallGraph) -> str:
    """High above 50 edges, Moderate above 20, else Low."""
    n = len(graph.edges)
    if n > HIGH_COMPLEXITY_EDGES:
        return "High"
    if n > MODERATE_COMPLEXITY_EDGES:
        return "Moderate"
    return "Low"


def _dot_quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def to_dot(graph: CallGraph) -> str:
    """
    Render as a DOT digraph, one statement per edge in edge-list order:

        digraph {
          "from" -> "to" [label="action (count)"];
        }
    """
    lines = ["digraph {"]
    for e in graph.edges:
        label = _dot_quote(f"{e.action} ({e.count})")
        lines.append(f"  {_dot_quote(e.source)} -> {_dot_quote(e.target)} [label={label}];")
    lines.append("}")
    return "\n".join(lines) + "\n"
