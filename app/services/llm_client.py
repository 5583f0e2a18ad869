"""
LLM client used by every generation endpoint.

Anthropic (Claude) is the default provider; OpenAI can be selected with
LLM_PROVIDER=openai. Calls go through the service gateway (circuit breaker,
concurrency cap, timeout) and return plain text.
"""
from functools import lru_cache
from typing import Optional

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from app.config import get_settings
from app.services.gateway import CircuitOpenError, get_gateway
from app.services.json_repair import LLMResponseParseError
from app.utils.logger import logger
from app.utils.metrics import track_duration

SUPPORTED_PROVIDERS = ("anthropic", "openai")


class LLMConfigurationError(Exception):
    """The configured provider cannot be used (missing API key, unknown provider)."""


# Typed failures the app-level exception handlers render; routes let them through
LLM_ERRORS = (LLMConfigurationError, LLMResponseParseError, CircuitOpenError)


class LLMClient:
    def __init__(self, provider: str, api_key: str, model: str):
        self.provider = provider
        self.model = model
        if provider == "anthropic":
            self.client = AsyncAnthropic(api_key=api_key)
        else:
            self.client = AsyncOpenAI(api_key=api_key)

    async def generate_text(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 2000,
        temperature: float = 0.7,
        operation: str = "generate",
    ) -> str:
        """Send a single prompt and return the model's text response"""
        async with track_duration(self.provider, operation):
            if self.provider == "anthropic":
                text = await self._anthropic_text(prompt, system, max_tokens, temperature)
            else:
                text = await self._openai_text(prompt, system, max_tokens, temperature)

        logger.info(
            f"[LLM] {operation} returned {len(text)} characters",
            extra={"service": self.provider, "endpoint": operation, "chars": len(text)},
        )
        return text.strip()

    async def _anthropic_text(self, prompt, system, max_tokens, temperature) -> str:
        kwargs = {}
        if system:
            kwargs["system"] = system
        message = await get_gateway().execute(
            "anthropic",
            self.client.messages.create,
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
        return "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )

    async def _openai_text(self, prompt, system, max_tokens, temperature) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        response = await get_gateway().execute(
            "openai",
            self.client.chat.completions.create,
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ""


@lru_cache()
def _build_client(provider: str, api_key: str, model: str) -> LLMClient:
    return LLMClient(provider, api_key, model)


class UnconfiguredLLMClient:
    """
    Returned by get_llm_client when no provider can be built. Fails on first
    use, so a request with a bad body still gets its 400 from validation.
    """

    provider = "unconfigured"

    def __init__(self, message: str):
        self.message = message

    async def generate_text(self, *args, **kwargs) -> str:
        raise LLMConfigurationError(self.message)


def build_llm_client() -> LLMClient:
    """Raises LLMConfigurationError for an unknown provider or a missing API key"""
    settings = get_settings()
    provider = settings.llm_provider.lower()

    if provider == "anthropic":
        api_key, model = settings.anthropic_api_key, settings.anthropic_model
    elif provider == "openai":
        api_key, model = settings.openai_api_key, settings.openai_model
    else:
        raise LLMConfigurationError(
            f"Unsupported LLM provider '{settings.llm_provider}'. "
            f"Expected one of: {', '.join(SUPPORTED_PROVIDERS)}"
        )

    if not api_key:
        logger.error(f"[LLM] {provider.upper()}_API_KEY is not configured")
        raise LLMConfigurationError(
            f"AI analysis is not configured. The {provider.upper()}_API_KEY "
            "environment variable is missing."
        )

    return _build_client(provider, api_key, model)


def get_llm_client():
    """FastAPI dependency; configuration errors surface when the client is used"""
    try:
        return build_llm_client()
    except LLMConfigurationError as e:
        return UnconfiguredLLMClient(str(e))
