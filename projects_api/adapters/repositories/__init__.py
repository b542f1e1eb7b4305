"""Repository adapters.

Services depend on the interfaces in ``base``; ``in_memory`` provides a
process-local implementation that can later be replaced by a relational store.
"""
