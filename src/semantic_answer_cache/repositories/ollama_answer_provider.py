"""Ollama-based answer provider.

Generates fresh answers on a cache miss through Ollama's ``/api/generate``
endpoint. Failures are raised as-is so the engine can propagate them to the
caller without caching anything.
"""

import httpx

from semantic_answer_cache.config import settings


class OllamaAnswerProvider:
    """Ollama implementation of AnswerProvider protocol.

    Example:
        ```python
        answers = OllamaAnswerProvider.create(model_name="llama3.2")
        text = await answers.generate("What is a semantic cache?")
        await answers.close()
        ```
    """

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        system_prompt: str | None = None,
    ) -> None:
        """Initialize the Ollama answer provider.

        Args:
            model_name: Name of the Ollama model. Defaults to settings.answer_model.
            base_url: Ollama API base URL. Defaults to settings.ollama_base_url.
            timeout: Request timeout in seconds. Defaults to settings.
            system_prompt: Optional system prompt sent with every query.
        """
        self._model_name = model_name or settings.answer_model
        self._base_url = base_url or settings.ollama_base_url
        self._timeout = timeout or settings.answer_timeout_seconds
        self._system_prompt = system_prompt
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        base_url: str | None = None,
    ) -> "OllamaAnswerProvider":
        """Factory method to create OllamaAnswerProvider with defaults."""
        return cls(model_name=model_name, base_url=base_url)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @property
    def model_name(self) -> str:
        return self._model_name

    async def generate(self, text: str) -> str:
        """Generate an answer for the query.

        Args:
            text: The user's query

        Returns:
            The generated answer text

        Raises:
            httpx.HTTPError: If the Ollama API request fails
            ValueError: If the response has no answer text
        """
        payload: dict[str, object] = {
            "model": self._model_name,
            "prompt": text,
            "stream": False,
        }
        if self._system_prompt:
            payload["system"] = self._system_prompt

        response = await self.client.post(f"{self._base_url}/api/generate", json=payload)
        response.raise_for_status()
        data = response.json()

        if "response" not in data:
            raise ValueError(f"Unexpected response format: {data}")
        return data["response"]

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
