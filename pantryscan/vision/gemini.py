"""Gemini API vision backend for item extraction."""

from __future__ import annotations

from . import VisionBackend
from .images import EncodedImage
from .prompts import SYSTEM_PROMPT


class GeminiVisionBackend(VisionBackend):
    """Extract items from kitchen and receipt photos using Google Gemini's vision capability."""

    def __init__(
        self,
        api_key: str = "",
        model: str = "gemini-2.0-flash",
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        super().__init__(max_retries=max_retries, retry_delay=retry_delay)
        self._api_key = api_key
        self._model = model

    def _check_ready(self) -> None:
        if not self._api_key:
            raise ValueError(
                "Gemini API key is not set. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

    async def _complete(self, prompt: str, image: EncodedImage) -> str:
        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model, system_instruction=SYSTEM_PROMPT)

        parts: list = [
            {"mime_type": image.media_type, "data": image.data},
            prompt,
        ]
        response = await model.generate_content_async(
            parts,
            generation_config={"temperature": 0.2, "max_output_tokens": 8192},
        )
        return response.text
