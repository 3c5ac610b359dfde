"""Claude API client wrapper for test generation and report summaries."""

from __future__ import annotations

import logging
import os
import re
import threading
import time
from pathlib import Path
from typing import Optional

import anthropic

logger = logging.getLogger(__name__)

# Configurable debug directory, set by the orchestrator at startup
_debug_dir: Path | None = None

_FENCE_PATTERN = re.compile(
    r'^```(?:apex|java|cls|)?[ \t]*\n(.*?)\n```\s*$',
    re.DOTALL | re.MULTILINE,
)


def set_debug_dir(path: Path) -> None:
    """Set the directory for AI exchange logs."""
    global _debug_dir
    _debug_dir = path
    _debug_dir.mkdir(parents=True, exist_ok=True)


def _get_debug_dir() -> Path:
    """Get or create the debug directory."""
    global _debug_dir
    if _debug_dir is None:
        _debug_dir = Path(".apex-coverage") / "debug"
    _debug_dir.mkdir(parents=True, exist_ok=True)
    return _debug_dir


class AIClient:
    """Wrapper around the Anthropic Claude API."""

    def __init__(self, model: str = "claude-opus-4-6", max_tokens: int = 8000,
                 timeout: float = 600.0):
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise EnvironmentError(
                "ANTHROPIC_API_KEY environment variable is not set. "
                "Please set it before generating tests."
            )
        # No SDK-level retries; a failed call is reported as failed
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model
        self.max_tokens = max_tokens
        self._call_count = 0
        self._count_lock = threading.Lock()

    @property
    def call_count(self) -> int:
        return self._call_count

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None,
        temperature: float = 0.3,
        timeout: Optional[float] = None,
    ) -> str:
        """Send a completion request to Claude and return the text response."""
        with self._count_lock:
            self._call_count += 1
            call_number = self._call_count
        tokens = max_tokens or self.max_tokens
        logger.info(
            "Calling AI (call #%d, model=%s, max_tokens=%d)...",
            call_number, self.model, tokens,
        )
        logger.debug("AI prompt length: system=%d chars, user=%d chars",
                     len(system_prompt), len(user_message))

        request = dict(
            model=self.model,
            max_tokens=tokens,
            temperature=temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_message}],
        )
        if timeout is not None:
            request["timeout"] = timeout

        try:
            call_start = time.time()
            response = self.client.messages.create(**request)
            call_duration = time.time() - call_start
            text = "".join(
                getattr(block, "text", "") for block in response.content
            )
            logger.info("AI response received in %.1fs (%d chars)",
                        call_duration, len(text))

            if response.stop_reason == "max_tokens":
                logger.warning(
                    "AI response was truncated! Hit max_tokens limit (%d). "
                    "Consider increasing ai_max_tokens in config.",
                    tokens,
                )

            self._save_exchange_log(
                call_number=call_number,
                system_prompt=system_prompt,
                user_message=user_message,
                response_text=text,
                error=None,
            )
            return text
        except anthropic.APIError as e:
            logger.error("Claude API error: %s", e)
            self._save_exchange_log(
                call_number=call_number,
                system_prompt=system_prompt,
                user_message=user_message,
                response_text="",
                error=str(e),
            )
            raise

    @staticmethod
    def extract_code(text: str) -> str:
        """Strip a surrounding markdown code fence from a response, if any."""
        text = text.strip()
        match = _FENCE_PATTERN.search(text)
        if match:
            logger.debug("Stripped markdown code fences from AI response")
            return match.group(1).strip()
        return text

    # ------------------------------------------------------------------
    # Debug logging
    # ------------------------------------------------------------------

    @staticmethod
    def _save_exchange_log(
        call_number: int,
        system_prompt: str,
        user_message: str,
        response_text: str,
        error: str | None,
    ) -> None:
        """Save the full AI exchange (prompt + response) to a log file."""
        try:
            debug_dir = _get_debug_dir()
            ts = time.strftime("%Y%m%d_%H%M%S")
            log_file = debug_dir / f"ai_call_{ts}_{call_number:03d}.log"

            with open(log_file, "w", encoding="utf-8") as f:
                f.write(f"=== AI CALL #{call_number} at {time.strftime('%Y-%m-%d %H:%M:%S')} ===\n\n")
                f.write(f"=== SYSTEM PROMPT ({len(system_prompt)} chars) ===\n")
                f.write(system_prompt)
                f.write(f"\n\n=== USER MESSAGE ({len(user_message)} chars) ===\n")
                f.write(user_message)
                f.write(f"\n\n=== RESPONSE ({len(response_text)} chars) ===\n")
                f.write(response_text if response_text else "(empty)")
                if error:
                    f.write(f"\n\n=== ERROR ===\n{error}\n")

            logger.debug("AI exchange logged to %s", log_file)
        except OSError as log_err:
            logger.debug("Failed to save AI exchange log: %s", log_err)
