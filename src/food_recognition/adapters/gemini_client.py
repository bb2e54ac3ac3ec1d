"""Google Gemini generateContent client."""

import json
from dataclasses import dataclass

import httpx

from food_recognition.services.recognition import ModelClient, ModelNotConfiguredError


@dataclass
class HttpxGeminiClient(ModelClient):
    """HTTPX-backed Gemini client requesting JSON output."""

    api_key: str | None
    model: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, api_key: str | None, model: str, base_url: str
    ) -> "HttpxGeminiClient":
        """Create a Gemini client with a managed httpx session."""
        return cls(
            api_key=api_key,
            model=model,
            base_url=base_url,
            http_client=httpx.AsyncClient(),
        )

    async def generate(
        self,
        *,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Call generateContent and parse the first candidate as JSON."""
        if not self.api_key:
            raise ModelNotConfiguredError("GEMINI_API_KEY is not configured")
        parts: list[dict[str, object]] = [{"text": prompt}]
        if image_data_url is not None:
            mime_type, data = _split_data_url(image_data_url)
            parts.append({"inlineData": {"mimeType": mime_type, "data": data}})
        url = f"{self.base_url}/models/{self.model}:generateContent"
        response = await self.http_client.post(
            url,
            params={"key": self.api_key},
            json={
                "contents": [{"parts": parts}],
                "generationConfig": {"responseMimeType": "application/json"},
            },
            timeout=30,
        )
        response.raise_for_status()
        payload = response.json()
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
        return json.loads(text)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _split_data_url(data_url: str) -> tuple[str, str]:
    header, _, data = data_url.partition(",")
    mime_type = header.removeprefix("data:").split(";", maxsplit=1)[0]
    return mime_type or "image/jpeg", data
