"""
ConceptGraph: knowledge-graph concept deduplication service.

Keeps a graph of concepts and typed relationships clean by detecting
lexically similar concepts, merging them into a single node, and
rewiring their relationships, guarded by a run-level lock.
"""

__version__ = "0.1.0"
