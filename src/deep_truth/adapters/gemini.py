"""IModelBackend adapter for Google Gemini (requires GOOGLE_API_KEY)."""

from typing import AsyncIterator, Optional

import google.generativeai as genai

from deep_truth.domain.errors import InvalidInput
from deep_truth.ports.interfaces import IModelBackend


class GeminiBackend(IModelBackend):
    """Streams generate_content chunks from the Gemini SDK."""

    def __init__(self, api_key: Optional[str], model: str = "gemini-2.0-flash"):
        if not (api_key or "").strip():
            raise InvalidInput("GOOGLE_API_KEY is required for the gemini provider")
        genai.configure(api_key=api_key)
        self.model_name = model
        self._model = genai.GenerativeModel(model)

    @property
    def name(self) -> str:
        return f"gemini:{self.model_name}"

    async def invoke(self, prompt: str) -> AsyncIterator[str]:
        response = await self._model.generate_content_async(prompt, stream=True)
        async for chunk in response:
            text = chunk.text
            if text:
                yield text
