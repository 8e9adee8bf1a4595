"""LLM backends, one per integration style, selected once from the model identifier."""

import asyncio
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import groq
import httpx
import openai
import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import ConfigurationError, UnsupportedModelError
from app.core.logging import preview
from app.services.analysis.exceptions import LLMBackendError

logger = structlog.get_logger(__name__)

_executor = ThreadPoolExecutor(max_workers=2)

OLLAMA_MODELS = frozenset({
    "deepseek-r1:1.5b",
    "deepseek-r1:14b",
    "llama3.2-vision",
    "dolphin3",
    "llama3",
    "llama3.1",
    "llama3.2",
})
AZURE_MODELS = {"azure-gpt-4": None, "azure-gpt-4o": "gpt-4o"}
GROQ_PREFIX = "groq/"
AZURE_SYSTEM_PROMPT = "You are a helpful assistant."

_SDK_ERRORS = (openai.OpenAIError, groq.GroqError)


class LLMBackend(ABC):
    """A model that turns a prompt into reply text."""

    name: str = "llm"

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """Send the prompt and return the reply text (synchronous)."""

    async def generate(self, prompt: str) -> str:
        """Run `complete` on a worker thread."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(_executor, self.complete, prompt)


class OllamaBackend(LLMBackend):
    """Self-hosted completion endpoint behind HTTP basic auth."""

    name = "ollama"

    def __init__(
        self,
        model: str,
        base_url: str,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 300.0,
        client: httpx.Client | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._auth = (username or "", password or "") if (username or password) else None
        self._client = client or httpx.Client(timeout=timeout)

    def complete(self, prompt: str) -> str:
        logger.debug("llm_request", backend=self.name, model=self.model, prompt=preview(prompt))
        try:
            response = self._client.post(
                f"{self.base_url}/api/generate",
                json={"model": self.model, "prompt": prompt, "stream": False},
                auth=self._auth,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise LLMBackendError(f"Ollama request failed: {e}") from e

        if not isinstance(payload, dict):
            return ""
        return payload.get("response") or ""


class ChatCompletionBackend(LLMBackend):
    """Hosted chat-completion API (OpenAI and Groq share the same surface)."""

    name = "chat-completion"

    def __init__(
        self,
        client: Any,
        model: str,
        max_tokens: int | None = None,
        system_prompt: str | None = None,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt

    def _messages(self, prompt: str) -> list[dict[str, str]]:
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _request_options(self) -> dict[str, Any]:
        return {"max_tokens": self.max_tokens} if self.max_tokens else {}

    def complete(self, prompt: str) -> str:
        logger.debug("llm_request", backend=self.name, model=self.model, prompt=preview(prompt))
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(prompt),
                **self._request_options(),
            )
        except _SDK_ERRORS as e:
            raise LLMBackendError(f"{self.name} request failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class AzureOpenAIBackend(ChatCompletionBackend):
    """Azure OpenAI deployment addressed by endpoint, deployment and API version."""

    name = "azure-openai"

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        deployment: str,
        api_version: str,
        max_tokens: int | None = None,
        client: Any = None,
    ):
        client = client or openai.AzureOpenAI(
            azure_endpoint=endpoint,
            api_key=api_key,
            api_version=api_version,
            azure_deployment=deployment,
        )
        super().__init__(client, deployment, max_tokens=max_tokens, system_prompt=AZURE_SYSTEM_PROMPT)

    def _request_options(self) -> dict[str, Any]:
        return {**super()._request_options(), "temperature": 1, "top_p": 1}


class GeminiBackend(LLMBackend):
    """Google generative API."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int | None = None,
        client: Any = None,
    ):
        self.client = client or genai.Client(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    def complete(self, prompt: str) -> str:
        logger.debug("llm_request", backend=self.name, model=self.model, prompt=preview(prompt))
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=genai_types.GenerateContentConfig(max_output_tokens=self.max_tokens),
            )
        except (genai_errors.APIError, httpx.HTTPError) as e:
            raise LLMBackendError(f"Gemini request failed: {e}") from e

        return response.text or ""


def _require(value: str | None, env_name: str) -> str:
    if not value:
        raise ConfigurationError(f"{env_name} not configured")
    return value


def resolve_backend(model_id: str, settings: Settings | None = None) -> LLMBackend:
    """Map a model identifier to its backend.

    Raises:
        UnsupportedModelError: the identifier matches no known backend
        ConfigurationError: the matching backend is missing credentials
    """
    settings = settings or default_settings
    model = (model_id or "").strip().lower()

    if model in OLLAMA_MODELS:
        backend: LLMBackend = OllamaBackend(
            model,
            settings.ollama_base_url,
            username=settings.ollama_username,
            password=settings.ollama_password,
            timeout=settings.llm_timeout_seconds,
        )
    elif model.startswith("gpt-") or model == "openai":
        client = openai.OpenAI(
            api_key=_require(settings.openai_api_key, "OPENAI_API_KEY"),
            timeout=settings.llm_timeout_seconds,
        )
        backend = ChatCompletionBackend(client, "gpt-4" if model == "openai" else model)
    elif model.startswith(GROQ_PREFIX) and len(model) > len(GROQ_PREFIX):
        client = groq.Groq(
            api_key=_require(settings.groq_api_key, "GROQ_API_KEY"),
            timeout=settings.llm_timeout_seconds,
        )
        backend = ChatCompletionBackend(
            client,
            model_id.strip()[len(GROQ_PREFIX):],
            max_tokens=settings.llm_max_tokens,
        )
    elif model in AZURE_MODELS:
        backend = AzureOpenAIBackend(
            endpoint=_require(settings.azure_endpoint, "AZURE_ENDPOINT"),
            api_key=_require(settings.azure_api_key, "AZURE_API_KEY"),
            deployment=AZURE_MODELS[model] or settings.azure_deployment,
            api_version=settings.azure_api_version,
            max_tokens=settings.llm_max_tokens,
        )
    elif model == "gemini":
        backend = GeminiBackend(
            api_key=_require(settings.gemini_api_key, "GEMINI_API_KEY"),
            model=settings.gemini_model,
            max_tokens=settings.llm_max_tokens,
        )
    else:
        raise UnsupportedModelError(f"Unsupported LLM model: {model_id}")

    logger.info("llm_backend_selected", model=model_id, backend=backend.name)
    return backend
