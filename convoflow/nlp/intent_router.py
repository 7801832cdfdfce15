"""Rule-based intent classifier producing `ClassificationResult`.

Intent classification logic:
    Rules are evaluated in a fixed order and the first match wins. Matches are
    never scored against each other or merged:

    1. image keywords        -> `image`      0.9   {image, generation}
    2. `hello` / `hi`        -> `greeting`   0.95
    3. `?`                   -> `question`   0.85
    4. `help` / `please`     -> `request`    0.8
    5. `ai` / `model` / `neural` -> `technical` 0.9 {AI, technology}
    6. otherwise             -> `general`    0.7

    Word matching is case-insensitive substring matching, so `hi` also matches
    inside words such as `this` or `which`.

Interaction with core:
    `convoflow.core.engine` classifies the enhanced message and passes the result
    to model selection and metrics.

Determinism:
    Pure function of the input text.
"""

from convoflow.core.routing_types import ClassificationResult, Intent
from convoflow.image.service import IMAGE_CONFIDENCE, IMAGE_ENTITIES, is_image_request


GREETING_MARKERS = ("hello", "hi")
REQUEST_MARKERS = ("help", "please")
TECHNICAL_MARKERS = ("ai", "model", "neural")
TECHNICAL_ENTITIES = ("AI", "technology")


def classify_intent(message: str) -> ClassificationResult:
    """Classify a user message into intent, confidence, and entity tags.

    Edge cases:
        - Empty input falls through every rule to `general`.
        - A message containing both `hello` and `?` is a greeting.
    """
    text = message or ""
    lowered = text.lower()

    if is_image_request(text):
        return ClassificationResult(Intent.IMAGE, IMAGE_CONFIDENCE, IMAGE_ENTITIES)

    if any(marker in lowered for marker in GREETING_MARKERS):
        return ClassificationResult(Intent.GREETING, 0.95)

    if "?" in text:
        return ClassificationResult(Intent.QUESTION, 0.85)

    if any(marker in lowered for marker in REQUEST_MARKERS):
        return ClassificationResult(Intent.REQUEST, 0.8)

    if any(marker in lowered for marker in TECHNICAL_MARKERS):
        return ClassificationResult(Intent.TECHNICAL, 0.9, TECHNICAL_ENTITIES)

    return ClassificationResult(Intent.GENERAL, 0.7)
