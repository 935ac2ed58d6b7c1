"""Flatten OpenAI-style message history into the single question metaso accepts."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

# Injected before the newest message from the third message on
FILE_ATTENTION_PROMPT = "关注用户最新发送文件和消息"
TEXT_ATTENTION_PROMPT = "关注用户最新的消息"


def has_file_or_image(message: dict[str, Any]) -> bool:
    """
    Check if a message carries file or image parts.

    Args:
        message: Message dict with 'content' field

    Returns:
        True if any content part is of type "file" or "image_url"
    """
    content = message.get("content")
    if isinstance(content, list):
        return any(
            isinstance(item, dict) and item.get("type") in ("file", "image_url")
            for item in content
        )
    return False


def message_lines(message: dict[str, Any]) -> str:
    """
    Render one message as "role:text" lines.

    Examples:
        >>> message_lines({"role": "assistant", "content": "Hi"})
        "assistant:Hi\\n"

        >>> message_lines({"content": [{"type": "text", "text": "a"}, {"type": "image_url"}]})
        "user:a\\n"
    """
    role = message.get("role") or "user"
    content = message.get("content")

    if isinstance(content, list):
        lines = []
        for item in content:
            if isinstance(item, dict) and item.get("type") == "text":
                lines.append(f"{role}:{item.get('text') or ''}\n")
        return "".join(lines)

    if content is None:
        content = ""
    return f"{role}:{content}\n"


def messages_prepare(messages: list[dict[str, Any]]) -> str:
    """
    Merge a conversation into one prompt string.

    The upstream only reads a single question, so history is replayed as:
        user:old message 1
        assistant:old message 2
        user:new message

    From the third message on, a system message asking the model to focus on
    the newest message (or newest file) is inserted before the last one.
    The input list is left untouched.

    Args:
        messages: OpenAI-format messages, full context included

    Returns:
        The flattened prompt
    """
    messages = list(messages)
    if not messages:
        return ""

    if len(messages) > 2:
        if has_file_or_image(messages[-1]):
            messages.insert(-1, {"role": "system", "content": FILE_ATTENTION_PROMPT})
            logger.info("Injected file attention system prompt")
        else:
            messages.insert(-1, {"role": "system", "content": TEXT_ATTENTION_PROMPT})
            logger.info("Injected message attention system prompt")

    content = "".join(message_lines(message) for message in messages)
    logger.info(f"Merged conversation:\n{content}")
    return content
