from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Optional, Union


class Message(BaseModel):
    """OpenAI-format message with either text (string) or multi-part (array) content"""
    role: Optional[str] = "user"
    content: Union[str, List[Dict[str, Any]], None] = ""

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "examples": [
                {
                    "role": "user",
                    "content": "秘塔AI搜索是什么？"
                },
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "What's in this file?"},
                        {"type": "file", "file_url": {"url": "https://example.com/a.pdf"}}
                    ]
                }
            ]
        }
    )


class ChatCompletionRequest(BaseModel):
    model: Optional[str] = None  # Normalized to a supported search mode
    messages: List[Message]
    stream: bool = False
    use_search: bool = True


class TokenCheckRequest(BaseModel):
    token: str
