"""Image request detection and placeholder image synthesis.

Role in pipeline:
    - `is_image_request` is checked by the orchestrator before any other stage.
      A positive match short-circuits enhancement, classification, and
      generation entirely.
    - `synthesize_image` builds the complete reply text for that short-circuit.

Placeholder behavior:
    No image provider is called. The reply embeds a static placeholder URL whose
    `query` parameter carries the percent-encoded prompt.

Error handling strategy:
    - `synthesize_image` never raises. Encoding failures (for example lone
      surrogates that cannot be UTF-8 encoded) are logged and replaced by
      `IMAGE_UNAVAILABLE_MESSAGE`.

Determinism:
    Both functions are pure for a given input.
"""

import logging
from urllib.parse import quote


logger = logging.getLogger(__name__)

# Model label recorded in metrics for the short-circuit path.
IMAGE_MODEL_ID = "image-generator"
IMAGE_CONFIDENCE = 0.9
IMAGE_ENTITIES = ("image", "generation")

IMAGE_KEYWORDS = (
    "image",
    "picture",
    "photo",
    "draw",
    "create",
    "generate",
    "show me",
    "make",
    "design",
    "illustration",
    "artwork",
    "visual",
    "sketch",
)

PLACEHOLDER_URL_TEMPLATE = "/placeholder.svg?height=512&width=512&query={query}"

IMAGE_UNAVAILABLE_MESSAGE = (
    "I apologize, but I'm currently unable to generate images. Please try again later."
)

# Characters left unescaped by a URI-component encoder besides alphanumerics and `-_.~`.
_URI_COMPONENT_SAFE = "!*'()"


def is_image_request(message: str) -> bool:
    """Return whether any image keyword occurs in `message` (case-insensitive)."""
    lowered = (message or "").lower()
    return any(keyword in lowered for keyword in IMAGE_KEYWORDS)


def synthesize_image(prompt: str) -> str:
    """Build the markdown reply for an image request.

    Args:
        prompt: Original user message.

    Returns:
        Markdown text embedding a placeholder image reference, or
        `IMAGE_UNAVAILABLE_MESSAGE` when the reference cannot be built.
    """
    try:
        image_url = PLACEHOLDER_URL_TEMPLATE.format(
            query=quote(prompt, safe=_URI_COMPONENT_SAFE)
        )
        return (
            f'I\'ve generated an image based on your request: "{prompt}"\n\n'
            f"![Generated Image]({image_url})\n\n"
            "This image was created using AI image generation based on your description."
        )
    except Exception:
        logger.exception("Image synthesis failed")
        return IMAGE_UNAVAILABLE_MESSAGE
