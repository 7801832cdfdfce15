"""Retrieval package.

Architectural role:
    Provides retrieval-time context enhancement used by core orchestration.

Scope:
    - `context_builder`: trigger detection, search provider protocol, and the
      placeholder provider used in place of real web search.
"""
