"""LLM Client for Groq API integration."""
import json
import re
import time
from dataclasses import dataclass
from typing import Optional, Dict, Any
from groq import Groq
from groq import RateLimitError, AuthenticationError, APIError, APITimeoutError
import logging

from config import GROQ_API_KEY, MAX_TOKENS

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: str
    tokens_input: int
    tokens_output: int
    latency_ms: int
    model_used: str


@dataclass
class LLMError:
    """Structured error response from LLM operations."""
    code: str
    message: str
    details: Dict[str, Any]


class LLMClientError(Exception):
    """Custom exception for LLM client errors with structured error information."""

    def __init__(self, error: LLMError):
        self.error = error
        super().__init__(error.message)


# Groq SDK exception -> (code, user facing message). Order matters: APIError is the base class.
_ERROR_MAP = (
    (RateLimitError, "RATE_LIMIT_ERROR", "Rate limit exceeded. Please try again in a few moments."),
    (AuthenticationError, "AUTHENTICATION_ERROR", "Authentication failed. Please check your API key."),
    (APITimeoutError, "TIMEOUT_ERROR", "Request timed out. Please try again."),
    (APIError, "API_ERROR", None),
)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class LLMClient:
    """Client for interfacing with Groq API for chat completions."""

    def __init__(self, api_key: Optional[str] = None):
        """
        Initialize LLM client with Groq API key.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
        """
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ValueError("GROQ_API_KEY must be provided or set in environment")

        self.client = Groq(api_key=self.api_key)
        logger.info("LLMClient initialized successfully")

    def generate(
        self,
        model: str,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = MAX_TOKENS,
        temperature: float = 0.7,
        json_mode: bool = False
    ) -> LLMResponse:
        """
        Generate a completion using Groq API.

        Args:
            model: Groq model name
            prompt: User message content
            system_prompt: Optional system instructions
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            json_mode: Ask the model for a single JSON object

        Returns:
            LLMResponse with text, token counts, and latency

        Raises:
            LLMClientError: Structured error with code, message, and details
        """
        start_time = time.time()

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs: Dict[str, Any] = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            logger.debug(f"Generating response with model: {model}")

            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                **kwargs
            )

            latency_ms = int((time.time() - start_time) * 1000)
            text = response.choices[0].message.content or ""
            tokens_input = response.usage.prompt_tokens
            tokens_output = response.usage.completion_tokens

            logger.info(
                f"Generated response: model={model}, "
                f"input_tokens={tokens_input}, output_tokens={tokens_output}, "
                f"latency={latency_ms}ms"
            )

            return LLMResponse(
                text=text,
                tokens_input=tokens_input,
                tokens_output=tokens_output,
                latency_ms=latency_ms,
                model_used=model
            )

        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            error = self._to_error(e, model, latency_ms)
            logger.error(
                f"{error.code}: model={model}, latency={latency_ms}ms, error={e}",
                exc_info=True,
                extra={"error_code": error.code, "error_details": error.details}
            )
            raise LLMClientError(error) from e

    def generate_json(
        self,
        model: str,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = MAX_TOKENS,
        temperature: float = 0.2
    ) -> Dict[str, Any]:
        """
        Generate a completion and parse it as a JSON object.

        Raises:
            LLMClientError: On API failure or when no JSON object can be parsed
        """
        response = self.generate(
            model=model,
            prompt=prompt,
            system_prompt=system_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
            json_mode=True
        )
        return self.parse_json(response.text, model=model)

    @staticmethod
    def parse_json(text: str, model: str = "") -> Dict[str, Any]:
        """
        Extract the first JSON object from model output.

        Local and smaller models sometimes wrap JSON in prose or code fences.
        """
        match = _JSON_OBJECT.search(text or "")
        if match:
            try:
                parsed = json.loads(match.group(0))
                if isinstance(parsed, dict):
                    return parsed
            except json.JSONDecodeError:
                pass

        raise LLMClientError(LLMError(
            code="PARSE_ERROR",
            message="Model did not return a valid JSON object",
            details={"model": model, "raw_output": (text or "")[:200]}
        ))

    @staticmethod
    def _to_error(exc: Exception, model: str, latency_ms: int) -> LLMError:
        details: Dict[str, Any] = {
            "model": model,
            "latency_ms": latency_ms,
            "original_error": str(exc)
        }
        for exc_type, code, message in _ERROR_MAP:
            if isinstance(exc, exc_type):
                if code == "RATE_LIMIT_ERROR":
                    details["retry_after"] = 60
                return LLMError(code=code, message=message or f"Groq API error: {exc}", details=details)

        details["error_type"] = type(exc).__name__
        return LLMError(
            code="UNKNOWN_ERROR",
            message=f"Unexpected error during generation: {exc}",
            details=details
        )
