"""
convoflow package.

Provides:
- A single-turn chat pipeline: image short-circuit, context enhancement,
  intent classification, model selection, and streamed generation
- FastAPI and terminal adapters over that pipeline
"""
