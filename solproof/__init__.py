"""
SolProof: automated first-pass audit of Solana programs.

Profiles the program binary, classifies recent transactions, rebuilds the
account call graph, inspects authorities and fuses everything into a safety
score and an audit report. Stages are pure functions over an injected chain
data source; the orchestrator in solproof.analysis.pipeline runs them.
"""

__version__ = "0.1.0"
