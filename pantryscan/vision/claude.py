"""Claude API vision backend for item extraction."""

from __future__ import annotations

from . import VisionBackend
from .images import EncodedImage
from .prompts import SYSTEM_PROMPT


class ClaudeVisionBackend(VisionBackend):
    """Extract items from kitchen and receipt photos using Claude's vision capability."""

    def __init__(
        self,
        api_key: str = "",
        model: str = "claude-sonnet-4-5-20250929",
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        super().__init__(max_retries=max_retries, retry_delay=retry_delay)
        self._api_key = api_key
        self._model = model

    def _check_ready(self) -> None:
        if not self._api_key:
            raise ValueError(
                "Anthropic API key is not set. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )

    async def _complete(self, prompt: str, image: EncodedImage) -> str:
        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        content: list[dict] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": image.media_type,
                    "data": image.base64,
                },
            },
            {"type": "text", "text": prompt},
        ]

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        response = await client.messages.create(
            model=self._model,
            max_tokens=8192,
            temperature=0.2,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": content}],
        )
        return response.content[0].text
