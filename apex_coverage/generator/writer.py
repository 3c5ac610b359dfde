"""AI-backed test class writer."""

from __future__ import annotations

import logging
from typing import Optional

import anthropic

from apex_coverage.ai.client import AIClient
from apex_coverage.ai.prompts.generation import (
    GENERATION_SYSTEM_PROMPT,
    build_generation_prompt,
)
from apex_coverage.models.coverage import SourceUnit
from apex_coverage.models.generation import (
    GenerationFailure,
    GenerationOutcome,
    GenerationSuccess,
)

logger = logging.getLogger(__name__)


class AITestWriter:
    """Asks Claude for the test class of one source unit."""

    def __init__(self, ai_client: AIClient, test_suffix: str = "Test",
                 temperature: float = 0.2):
        self.ai_client = ai_client
        self.test_suffix = test_suffix
        self.temperature = temperature

    def generate(
        self, unit: SourceUnit, source: str, timeout: Optional[float] = None,
    ) -> GenerationOutcome:
        test_class_name = unit.expected_test_name(self.test_suffix)
        user_message = build_generation_prompt(
            class_name=unit.name,
            test_class_name=test_class_name,
            source=source,
        )
        try:
            text = self.ai_client.complete(
                system_prompt=GENERATION_SYSTEM_PROMPT,
                user_message=user_message,
                temperature=self.temperature,
                timeout=timeout,
            )
        except anthropic.APITimeoutError:
            return GenerationFailure(reason=f"AI request timed out after {timeout}s")
        except anthropic.APIError as e:
            return GenerationFailure(reason=f"AI request failed: {e}")

        code = AIClient.extract_code(text)
        if not code:
            logger.warning("AI returned an empty test class for %s", unit.name)
            return GenerationFailure(reason="AI returned an empty response")
        return GenerationSuccess(text=code)
