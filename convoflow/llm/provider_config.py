"""Backend/runtime configuration for the LLM layer.

Architectural role:
    Centralizes backend selection, endpoint maps, sampling constants, and
    credential lookup for `convoflow.llm.service`, `convoflow.llm.client`, and
    `convoflow.llm.model_selector`.

Determinism:
    Deterministic for a fixed process environment and key files. Values are
    resolved at import time (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing key material is represented as `None`; `client` turns that into a
    `GenerationBackendError` when a keyed backend is called.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _optional_float(name: str) -> float | None:
    """Read an optional float environment variable; unset or blank -> `None`."""
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


# Backend id returned by the default model-selection policy.
DEFAULT_BACKEND = os.getenv("DEFAULT_BACKEND", "groq")

# OpenAI-compatible streaming endpoints keyed by backend id.
BACKENDS = {

    "groq": {
        "url": "https://api.groq.com/openai/v1/chat/completions",
        "key_file": "config/groq.key",
        "model": os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile"),
    },

    "openai": {
        "url": "https://api.openai.com/v1/chat/completions",
        "key_file": "config/openai.key",
        "model": os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
    },

    "local": {
        "url": "http://127.0.0.1:8080/v1/chat/completions",
        "key_file": None,
        "model": os.getenv("LOCAL_MODEL", "qwen2.5:3b"),
    },

}

# Sampling parameters bound to every generation call.
TEMPERATURE = 0.7
MAX_TOKENS = 1000

# No generation timeout unless the operator sets one.
LLM_TIMEOUT_SECONDS = _optional_float("LLM_TIMEOUT_SECONDS")


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/groq.key` -> `GROQ_API_KEY`).
        2. Raw file contents at `path`.

    Args:
        path: Configured key file path or `None`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - `None` path returns `None`.
        - Missing file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip()
