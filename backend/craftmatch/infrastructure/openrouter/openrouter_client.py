"""OpenRouter API client — implements the ChatProvider interface.

Talks to the OpenRouter chat completions endpoint over httpx. Every failure
(HTTP status, transport problem, error payload) is reported as
ChatProviderError so callers only have one exception type to handle.
"""

import logging

import httpx

from craftmatch.application.interfaces.chat_provider import ChatProvider
from craftmatch.domain.entities import ChatCompletionResult, ChatMessage, TokenUsage
from craftmatch.domain.exceptions import ChatProviderError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 30.0


class OpenRouterClient(ChatProvider):
    """Infrastructure adapter — connects to the OpenRouter API.

    Pass a shared ``httpx.AsyncClient`` for connection pooling (and for
    ``httpx.MockTransport`` in tests). Without one, the client opens its own
    on first use and releases it in :meth:`aclose`.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        app_name: str = "Craftmatch",
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._completions_url = f"{base_url.rstrip('/')}/chat/completions"
        self._app_name = app_name
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def provider_name(self) -> str:
        return "openrouter"

    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
        timeout: float | None = None,
    ) -> ChatCompletionResult:
        """Send a non-streaming chat completion to OpenRouter."""
        payload: dict = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        request_timeout = httpx.Timeout(timeout) if timeout is not None else httpx.USE_CLIENT_DEFAULT
        try:
            response = await self._client().post(
                self._completions_url,
                headers=self._headers(),
                json=payload,
                timeout=request_timeout,
            )
        except httpx.TimeoutException as exc:
            raise ChatProviderError(self.provider_name, 504, f"request timed out ({type(exc).__name__})") from exc
        except httpx.TransportError as exc:
            raise ChatProviderError(self.provider_name, 503, f"transport error ({type(exc).__name__})") from exc

        if response.status_code != 200:
            self._raise_provider_error(response)
        try:
            data = response.json()
        except ValueError as exc:
            raise ChatProviderError(self.provider_name, 502, "response body is not JSON") from exc
        return self._parse_completion_response(data)

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    # ── Helpers ──────────────────────────────────────────────────────

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=_DEFAULT_TIMEOUT_SECONDS)
        return self._http_client

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_name,
        }

    def _parse_completion_response(self, data: dict) -> ChatCompletionResult:
        """Convert the OpenRouter JSON body into a ChatCompletionResult."""
        if not isinstance(data, dict):
            raise ChatProviderError(self.provider_name, 502, "response body is not a JSON object")
        if "error" in data:
            error = data["error"] or {}
            raise ChatProviderError(
                provider=self.provider_name,
                status_code=error.get("code", 500),
                message=error.get("message", "Unknown error"),
            )

        choices = data.get("choices") or []
        if not choices:
            raise ChatProviderError(self.provider_name, 502, "No choices in response")

        choice = choices[0]
        usage = data.get("usage") or {}
        return ChatCompletionResult(
            model=data.get("model", ""),
            content=(choice.get("message") or {}).get("content") or "",
            finish_reason=choice.get("finish_reason") or "stop",
            usage=TokenUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            ),
            provider=self.provider_name,
        )

    def _raise_provider_error(self, response: httpx.Response) -> None:
        try:
            message = response.json().get("error", {}).get("message", response.text)
        except (ValueError, AttributeError):
            message = response.text
        logger.warning("OpenRouter returned HTTP %d", response.status_code)
        raise ChatProviderError(
            provider=self.provider_name,
            status_code=response.status_code,
            message=message,
        )
