"""Infrastructure — database engine, logging, and adapters for external collaborators.

Invariants:
    - Adapters implement core/repository_protocols.py and never commit
"""
