"""IModelBackend adapter for a local Ollama server."""

from typing import AsyncIterator, Optional

import ollama

from deep_truth.ports.interfaces import IModelBackend


class OllamaBackend(IModelBackend):
    """Streams /api/generate chunks from Ollama."""

    def __init__(
        self,
        host: str = "http://127.0.0.1:11434",
        model: str = "llama3.2",
        temperature: float = 0.0,
        num_predict: int = 5500,
        client: Optional[ollama.AsyncClient] = None,
    ):
        self.host = host
        self.model = model
        self.options = {"temperature": temperature, "num_predict": num_predict}
        self._client = client or ollama.AsyncClient(host=host)

    @property
    def name(self) -> str:
        return f"ollama:{self.model}"

    async def invoke(self, prompt: str) -> AsyncIterator[str]:
        stream = await self._client.generate(
            model=self.model,
            prompt=prompt,
            stream=True,
            options=self.options,
        )
        async for part in stream:
            yield part["response"]
