"""OpenAI Responses API client for structured food predictions."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from food_recognition.services.recognition import ModelClient, ModelNotConfiguredError


@dataclass
class OpenAIModelClient(ModelClient):
    """Model client backed by OpenAI Responses API."""

    client: AsyncOpenAI | None
    model: str
    reasoning_effort: str | None = None
    store: bool = False

    @classmethod
    def create(
        cls, api_key: str | None, model: str, reasoning_effort: str | None = None
    ) -> "OpenAIModelClient":
        """Create an OpenAI model client; without a key every call fails."""
        client = AsyncOpenAI(api_key=api_key) if api_key else None
        return cls(client=client, model=model, reasoning_effort=reasoning_effort)

    async def generate(
        self,
        *,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        if self.client is None:
            raise ModelNotConfiguredError("OPENAI_API_KEY is not configured")
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        if image_data_url is not None:
            content.append({"type": "input_image", "image_url": image_data_url})
        request_payload: dict[str, object] = {
            "model": self.model,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": self.store,
        }
        if self.reasoning_effort:
            request_payload["reasoning"] = {"effort": self.reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self.client is not None:
            await self.client.close()
