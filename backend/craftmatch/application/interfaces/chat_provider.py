"""Chat provider port — what the AI classification adapter needs from an LLM API."""

from abc import ABC, abstractmethod

from craftmatch.domain.entities import ChatCompletionResult, ChatMessage


class ChatProvider(ABC):
    """Port — a single-shot chat completion backend."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        ...

    @abstractmethod
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
        """Send one non-streaming completion request.

        ``json_mode`` asks the model for a bare JSON object; ``timeout``
        bounds this single call in seconds.

        Raises:
            ChatProviderError: the provider failed or could not be reached.
        """
        ...
