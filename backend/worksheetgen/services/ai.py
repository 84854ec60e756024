"""Generation client and the LLM capabilities behind it.

A capability is anything with ``async generate_json(instruction, schema) ->
str``. It talks to one hosted model and raises TransportFailure when the call
itself fails. WorksheetGenerationClient sends exactly one request per
``generate`` call and turns the returned text into a validated Worksheet.
"""
import asyncio
import json
import logging
import os
import time
from typing import Protocol

import httpx

from worksheetgen.core.errors import GenerationError, TransportFailure
from worksheetgen.models.worksheet import Worksheet
from worksheetgen.prompts.worksheet_generation import JSON_SCHEMA_SYSTEM_PROMPT
from worksheetgen.services.prompt_builder import GenerationRequest
from worksheetgen.services.validator import parse_payload, validate_worksheet_payload

logger = logging.getLogger("worksheetgen.generation")
_prompt_logger = logging.getLogger("worksheetgen.llm_prompts")


def _log_prompt(provider: str, model: str, instruction: str, schema: dict) -> None:
    if os.environ.get("DEBUG_LLM_PROMPTS", "").lower() in ("1", "true"):
        _prompt_logger.warning(
            "\n\n%s\n"
            "── INSTRUCTION ─────────────────────────────────────────\n%s\n"
            "── SCHEMA ──────────────────────────────────────────────\n%s\n"
            "── CONFIG ──────────────────────────────────────────────\n"
            "  provider=%s  model=%s\n"
            "%s",
            "=" * 60,
            instruction,
            json.dumps(schema, indent=2),
            provider,
            model,
            "=" * 60,
        )


class GenerationCapability(Protocol):
    async def generate_json(self, instruction: str, schema: dict) -> str: ...


class GeminiCapability:
    """Gemini structured output: the schema is passed as response_schema."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        temperature: float = 0.7,
        max_output_tokens: int = 8192,
    ):
        from google import genai

        self.client = genai.Client(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    async def generate_json(self, instruction: str, schema: dict) -> str:
        from google.genai import errors, types

        _log_prompt("gemini", self.model, instruction, schema)
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            response_mime_type="application/json",
            response_schema=schema,
            # No thinking budget: keeps preamble text out of the JSON output
            thinking_config=types.ThinkingConfig(thinking_budget=0),
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=instruction,
                config=config,
            )
        except errors.APIError as exc:
            raise TransportFailure(f"gemini returned {exc.code}: {exc.message}") from exc
        except (httpx.HTTPError, OSError) as exc:
            raise TransportFailure(f"gemini unreachable: {exc}") from exc
        return response.text or ""


class OpenAICapability:
    """OpenAI JSON mode: the schema travels in the system prompt."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_output_tokens: int = 8192,
    ):
        from openai import AsyncOpenAI

        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    async def generate_json(self, instruction: str, schema: dict) -> str:
        import openai

        _log_prompt("openai", self.model, instruction, schema)
        messages = [
            {"role": "system", "content": JSON_SCHEMA_SYSTEM_PROMPT.format(schema=json.dumps(schema))},
            {"role": "user", "content": instruction},
        ]
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_output_tokens,
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as exc:
            raise TransportFailure(f"openai request failed: {exc}") from exc
        return response.choices[0].message.content or ""


class WorksheetGenerationClient:
    """One atomic request/response exchange per generate() call. No retries."""

    def __init__(self, capability: GenerationCapability, timeout_seconds: float | None = 120.0):
        self.capability = capability
        self.timeout_seconds = timeout_seconds

    async def generate(self, request: GenerationRequest) -> Worksheet:
        t0 = time.time()
        try:
            raw = await asyncio.wait_for(
                self.capability.generate_json(request.instruction, request.schema),
                timeout=self.timeout_seconds,
            )
            worksheet = validate_worksheet_payload(parse_payload(raw))
        except asyncio.TimeoutError as exc:
            logger.error("Worksheet generation failed [transport_failure]: timed out after %ss",
                         self.timeout_seconds)
            raise TransportFailure("request timed out") from exc
        except GenerationError as exc:
            logger.error("Worksheet generation failed [%s]: %s", exc.kind, exc.detail)
            raise
        except Exception as exc:
            # SDK-internal errors not covered by the capability's own mapping
            logger.error("Worksheet generation failed [transport_failure]: %r", exc, exc_info=True)
            raise TransportFailure(f"unexpected {exc.__class__.__name__}: {exc}") from exc

        logger.info(
            "Generated worksheet %r with %d questions in %dms",
            worksheet.title, len(worksheet.questions), int((time.time() - t0) * 1000),
        )
        return worksheet
