"""Analytics package.

Scope:
    - `tracker`: metrics recorder protocol and the logging-backed recorder.
"""
