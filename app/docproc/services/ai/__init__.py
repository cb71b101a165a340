"""
AI service package for structuring extracted document text.

This package is split into:
- prompts: Prompt construction for the structuring request
- parsing: Best-effort JSON parsing of model answers
- fallback: Deterministic local structuring used without (or instead of) AI

The StructuringService class ties these together behind a single
structure() call that always returns a record.
"""

import logging
from datetime import date
from typing import Any, Protocol

from ..exceptions import StructuringDegraded
from ..utils import calculate_age, parse_iso_date
from .exceptions import AIServiceError
from .fallback import build_local_record
from .parsing import ParseResult, parse_json_from_text, unparseable_record
from .prompts import STRUCTURING_SYSTEM_PROMPT, build_structuring_prompt

logger = logging.getLogger(__name__)

__all__ = [
    "AIServiceError",
    "OpenAIGenerator",
    "ParseResult",
    "StructuringService",
    "TextGenerator",
    "build_local_record",
    "get_structuring_service",
    "parse_json_from_text",
]


class TextGenerator(Protocol):
    """Anything that turns a prompt into a model answer."""

    async def generate(self, prompt: str) -> str: ...


# =============================================================================
# OpenAI Backend
# =============================================================================


class OpenAIGenerator:
    """
    Text generation through OpenAI chat completions.

    Args:
        api_key: OpenAI API key.
        model: Chat model name.
        system_prompt: System message sent with every request.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        system_prompt: str = STRUCTURING_SYSTEM_PROMPT,
    ):
        self.api_key = api_key
        self.model = model
        self.system_prompt = system_prompt
        self._client = None

    @property
    def client(self):
        """Lazy-load the OpenAI client."""
        if self._client is None:
            if not self.api_key:
                raise AIServiceError(
                    "OpenAI API key not provided. Set OPENAI_API_KEY environment variable."
                )
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def generate(self, prompt: str) -> str:
        """
        Send a prompt and return the answer text.

        Raises:
            AIServiceError: On API errors or an empty answer.
        """
        import openai

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=0,
            )
        except openai.AuthenticationError as e:
            logger.error("OpenAI rejected the configured API key: %s", e)
            raise AIServiceError(f"OpenAI authentication failed: {e}") from e
        except openai.OpenAIError as e:
            logger.error("OpenAI request failed: %s", e)
            raise AIServiceError(f"OpenAI request failed: {e}") from e

        content = response.choices[0].message.content
        if not content:
            raise AIServiceError("Empty response from OpenAI")
        return content


# =============================================================================
# Structuring Service
# =============================================================================


class StructuringService:
    """
    Turns extracted text into a structured record.

    Uses the configured TextGenerator (OpenAI by default). In mock mode, or
    when the generator fails, the record is built locally with pattern
    matching and carries a ``note`` saying so.
    """

    def __init__(
        self,
        generator: TextGenerator | None = None,
        api_key: str | None = None,
        model: str | None = None,
        use_mock: bool | None = None,
        text_limit: int | None = None,
    ):
        """
        Initialize the structuring service.

        Args:
            generator: Backend to call. Defaults to OpenAI with ``api_key``.
            api_key: OpenAI API key. If None, read from settings.
            model: OpenAI model. If None, read from settings.
            use_mock: Force local structuring. If None, read from settings.
            text_limit: Characters of text sent to the model. If None, read from settings.
        """
        from ...config import get_settings

        settings = get_settings()
        if api_key is None:
            api_key = settings.openai_api_key
        if use_mock is None:
            use_mock = settings.ai_mock_mode

        self.api_key = api_key
        self.model = model or settings.openai_model
        self.text_limit = text_limit or settings.ai_text_limit
        self.use_mock = use_mock or (generator is None and not api_key)
        self._generator = generator

        if self.use_mock:
            logger.warning(
                "Structuring service running in MOCK MODE. Set OPENAI_API_KEY in .env for AI extraction."
            )

    @property
    def generator(self) -> TextGenerator:
        if self._generator is None:
            self._generator = OpenAIGenerator(api_key=self.api_key, model=self.model)
        return self._generator

    async def structure(
        self,
        raw_text: str,
        date_of_birth: str | date,
        today: date | None = None,
    ) -> dict[str, Any]:
        """
        Structure extracted text.

        Args:
            raw_text: Extracted document text.
            date_of_birth: Caller-supplied date of birth (YYYY-MM-DD or date).
            today: Reference date for the age, defaults to today.

        Returns:
            The parsed AI record, an unparseable-answer record, or a locally
            built record. Never raises for AI failures.
        """
        dob = parse_iso_date(date_of_birth)

        if self.use_mock:
            logger.info("Structuring text locally (MOCK MODE)")
            return build_local_record(raw_text, dob, today=today)

        try:
            return await self._structure_with_service(raw_text, dob, today)
        except StructuringDegraded as e:
            logger.warning("AI structuring unavailable, using local extractor: %s", e)
            return build_local_record(raw_text, dob, today=today, error=str(e))

    async def _structure_with_service(
        self,
        raw_text: str,
        dob: date,
        today: date | None,
    ) -> dict[str, Any]:
        age = calculate_age(dob, today=today)
        text = (raw_text or "")[: self.text_limit]
        prompt = build_structuring_prompt(text, dob, age)

        logger.info(
            "Calling AI structuring service: %d of %d chars",
            len(text),
            len(raw_text or ""),
        )
        try:
            answer = await self.generator.generate(prompt)
        except AIServiceError as e:
            raise StructuringDegraded(str(e)) from e
        except Exception as e:
            logger.exception("AI structuring call failed")
            raise StructuringDegraded(f"AI structuring call failed: {e}") from e

        result = parse_json_from_text(answer)
        if not result.ok:
            logger.warning("AI answer not parseable (%s): %s", result.error, answer[:200])
            return unparseable_record(answer)

        record = result.data
        personal_info = record.get("personalInfo")
        if not isinstance(personal_info, dict):
            personal_info = {}
        # The caller's date of birth always wins over anything the model found
        personal_info["dateOfBirth"] = dob.isoformat()
        personal_info["age"] = age
        record["personalInfo"] = personal_info

        logger.info("AI structuring completed: %d top-level fields", len(record))
        return record


# =============================================================================
# Singleton Factory
# =============================================================================

_structuring_service: StructuringService | None = None


def get_structuring_service() -> StructuringService:
    """Get or create the structuring service singleton."""
    global _structuring_service
    if _structuring_service is None:
        _structuring_service = StructuringService()
    return _structuring_service
