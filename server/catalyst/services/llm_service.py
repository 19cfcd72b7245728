"""LLM service using Google Gemini for structured (JSON) code generation."""

import json
import logging
from typing import Any

from google import genai
from google.genai import types

from catalyst.config import settings
from catalyst.models.chat import ChatMessage

logger = logging.getLogger(__name__)


class LLMResponseError(RuntimeError):
    """The model answered, but not with usable JSON."""


def _strip_fences(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.split("\n", 1)[1] if "\n" in raw else raw[3:]
    if raw.endswith("```"):
        raw = raw[: raw.rfind("```")]
    return raw.strip()


class LLMService:
    """Gemini integration returning parsed JSON objects."""

    def __init__(self) -> None:
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            api_key = settings.google_ai_api_key
            if not api_key:
                raise RuntimeError(
                    "GOOGLE_AI_API_KEY is not set. Please set it in your .env file or environment."
                )
            self._client = genai.Client(api_key=api_key)
        return self._client

    @staticmethod
    def _build_contents(messages: list[ChatMessage]) -> list[types.Content]:
        # Gemini has no assistant/system roles in contents; system text goes
        # into system_instruction, assistant turns become "model".
        contents: list[types.Content] = []
        for msg in messages:
            if msg.role == "system":
                continue
            role = "user" if msg.role == "user" else "model"
            contents.append(
                types.Content(role=role, parts=[types.Part.from_text(text=msg.content)])
            )
        return contents

    async def generate_json(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        response_schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run one completion and parse its JSON body.

        Raises ``LLMResponseError`` when the response is empty or not a JSON object.
        """
        client = self._get_client()

        config = types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=settings.llm_temperature,
            max_output_tokens=settings.llm_max_output_tokens,
            response_mime_type="application/json",
            response_json_schema=response_schema,
        )

        response = await client.aio.models.generate_content(
            model=settings.gemini_model,
            contents=self._build_contents(messages),
            config=config,
        )

        text = response.text
        if not text:
            raise LLMResponseError("The AI service returned an empty response")

        try:
            data = json.loads(_strip_fences(text))
        except json.JSONDecodeError as e:
            logger.warning("Failed to parse JSON from LLM response: %s", text[:200])
            raise LLMResponseError("The AI service returned invalid JSON") from e

        if not isinstance(data, dict):
            raise LLMResponseError("The AI service returned JSON that is not an object")
        return data
