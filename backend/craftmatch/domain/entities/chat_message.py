"""Value objects exchanged with the chat completion provider."""

from dataclasses import dataclass, field
from typing import Literal

ChatRole = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: ChatRole
    content: str = ""


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class ChatCompletionResult:
    """One completion. ``finish_reason`` is "length" when the answer was truncated."""

    model: str
    content: str
    finish_reason: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    provider: str = ""
