"""Core orchestration package.

Architectural role:
    Exposes the request-orchestration layer that sits between the HTTP/CLI
    adapters and the lower-level helpers (image detection, context enhancement,
    intent classification, model selection, generation, analytics).

Composition:
    - `engine`: `ChatOrchestrator`, the end-to-end request handler.
    - `routing_types`: shared immutable data contracts.
    - `errors`: exception types for unrecoverable pipeline failures.

Determinism and side effects:
    Package import itself is deterministic and side-effect free.
"""
