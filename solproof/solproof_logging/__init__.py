"""
Structured logging for SolProof.

Use get_logger(__name__) in every module; bind_program() for per-audit context.
"""

from solproof.solproof_logging.logger import bind_program, configure_logging, get_logger

__all__ = ["bind_program", "configure_logging", "get_logger"]
