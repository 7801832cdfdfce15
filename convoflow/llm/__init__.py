"""LLM access package.

Architectural role:
    Provides backend configuration, model selection, request binding, and the
    streaming transport used by orchestration to invoke text-generation backends.

Module split:
    - `provider_config`: environment-driven backend and sampling configuration.
    - `model_selector`: pluggable backend-selection policy.
    - `service`: `GenerationInvoker`, binding sampling defaults per call.
    - `client`: OpenAI-compatible streaming HTTP transport.
"""
