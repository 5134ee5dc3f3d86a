from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..memory.models import Message, MessageRole

DEFAULT_SERVER_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_SYSTEM_PROMPT = (
    "You are a professional AI assistant that helps users answer questions "
    "and analyze documents."
)

ANALYSIS_TEMPLATE = (
    "Please analyze the following file content and give a summary and suggestions:"
    "\n\n{document_text}"
)


class SessionState(str, Enum):
    """Lifecycle of a streaming chat session.

    FAILED is transient: the session passes through it while reporting a
    terminal error and settles back in IDLE.
    """

    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    FAILED = "failed"


class SessionConfig(BaseModel):
    """Settings used to build a chat completion request.

    Field aliases mirror the keys of the local settings store so a stored
    mapping validates directly into a config.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    endpoint_base_url: str = Field(
        default=DEFAULT_SERVER_URL,
        alias="serverUrl",
        description="Base URL of the OpenAI-compatible API",
    )
    api_key: str = Field(default="", alias="apiKey", description="Bearer token, may be empty")
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, alias="systemPrompt")
    model: str = Field(default=DEFAULT_MODEL, description="Model identifier")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2000, ge=1, alias="maxTokens")

    @property
    def chat_completions_url(self) -> str:
        return f"{self.endpoint_base_url.rstrip('/')}/chat/completions"

    def with_updates(self, **changes: Any) -> "SessionConfig":
        """Return a new validated config with ``changes`` applied."""
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)

    def to_storage_dict(self) -> dict[str, Any]:
        """Dump using the settings store keys."""
        return self.model_dump(by_alias=True)


class ChatCompletionRequest(BaseModel):
    """A fully built streaming chat completion request.

    Built from a config snapshot, so later config changes never reach it.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    api_key: str
    model: str
    messages: tuple[dict[str, str], ...]
    temperature: float
    max_tokens: int

    def payload(self) -> dict[str, Any]:
        """JSON body sent to the endpoint."""
        return {
            "model": self.model,
            "messages": [dict(message) for message in self.messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": True,
        }

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "text/event-stream",
            "Content-Type": "application/json",
        }


def build_request(
    config: SessionConfig,
    history: list[Message],
    user_text: str,
) -> ChatCompletionRequest:
    """Build a request from the system prompt, history and the new user turn.

    Args:
        config: Config snapshot to read model and generation parameters from
        history: ContextWindow messages, oldest first
        user_text: The new user turn

    Returns:
        ChatCompletionRequest ready to be streamed
    """
    messages = [{"role": MessageRole.SYSTEM.value, "content": config.system_prompt}]
    messages.extend(message.to_request_dict() for message in history)
    messages.append({"role": MessageRole.USER.value, "content": user_text})

    return ChatCompletionRequest(
        url=config.chat_completions_url,
        api_key=config.api_key,
        model=config.model,
        messages=tuple(messages),
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


def analysis_prompt(document_text: str) -> str:
    """Wrap a document in the fixed analysis request template."""
    return ANALYSIS_TEMPLATE.format(document_text=document_text)
