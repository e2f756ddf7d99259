from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, Sequence, Union


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class TokenUsage:
    prompt: int = 0
    completion: int = 0
    total: int = 0


@dataclass(frozen=True)
class CompletionOptions:
    force_high_quality: bool = False
    requires_accuracy: bool = False
    temperature: float | None = None


@dataclass
class CompletionResponse:
    raw: str
    parsed: Any = None
    usage: TokenUsage = field(default_factory=TokenUsage)
    model: str | None = None
    latency_ms: int | None = None


CompletionOutput = Union[CompletionResponse, dict, list, str, None]


class ExtractionFunction(Protocol):
    def __call__(
        self, prompt: str, options: CompletionOptions | None = None
    ) -> CompletionOutput: ...


class CompletionClient(Protocol):
    def complete_json(
        self,
        messages: Sequence[ChatMessage],
        *,
        options: CompletionOptions | None = None,
    ) -> CompletionResponse: ...


class CompletionError(RuntimeError):
    def __init__(self, message: str, *, code: str = "completion_failed"):
        super().__init__(message)
        self.code = code
