"""Image request package.

Scope:
    Detects image-style requests and builds the placeholder image reply used by
    the orchestrator's short-circuit path.

Non-goals:
    - No real text-to-image provider calls.
    - No file handling or Base64 encoding.
"""
