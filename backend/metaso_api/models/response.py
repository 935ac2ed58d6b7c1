from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

from metaso_api.utils.time import unix_timestamp


class Usage(BaseModel):
    """Fixed accounting fields; metaso does not report token counts"""

    prompt_tokens: int = 1
    completion_tokens: int = 1
    total_tokens: int = 2


class ResponseMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str = ""


class Choice(BaseModel):
    index: int = 0
    message: ResponseMessage = Field(default_factory=ResponseMessage)
    finish_reason: Optional[str] = "stop"


class ChatCompletion(BaseModel):
    """Aggregated (non-streaming) completion"""

    id: str
    model: str
    object: Literal["chat.completion"] = "chat.completion"
    choices: List[Choice] = Field(default_factory=lambda: [Choice()])
    usage: Usage = Field(default_factory=Usage)
    created: int = Field(default_factory=unix_timestamp)

    @property
    def content(self) -> str:
        return self.choices[0].message.content

    def append(self, text: str) -> None:
        self.choices[0].message.content += text


class ChunkChoice(BaseModel):
    index: int = 0
    delta: Dict[str, Any] = Field(default_factory=dict)
    finish_reason: Optional[str] = None


class ChatCompletionChunk(BaseModel):
    """One frame of a streamed completion"""

    id: str
    model: str
    object: Literal["chat.completion.chunk"] = "chat.completion.chunk"
    choices: List[ChunkChoice]
    created: int
    usage: Optional[Usage] = None

    def to_payload(self) -> dict:
        """Dump for the wire; `usage` only appears on the terminal chunk."""
        payload = self.model_dump()
        if self.usage is None:
            payload.pop("usage")
        return payload


class ModelCard(BaseModel):
    id: str
    object: Literal["model"] = "model"
    owned_by: str = "metaso-api"


class ModelList(BaseModel):
    object: Literal["list"] = "list"
    data: List[ModelCard]
