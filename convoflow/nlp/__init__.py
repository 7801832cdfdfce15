"""NLP utilities for request classification.

Module scope:
- Ordered rule-based intent classification (`intent_router`).

Determinism profile:
- Deterministic rule logic only; no model-backed scoring.
"""
