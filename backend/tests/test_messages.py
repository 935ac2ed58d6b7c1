"""Tests for conversation flattening."""

from metaso_api.utils.auth import pick_token, token_split
from metaso_api.utils.messages import (
    FILE_ATTENTION_PROMPT,
    TEXT_ATTENTION_PROMPT,
    has_file_or_image,
    message_lines,
    messages_prepare,
)


def test_has_file_or_image_text_only():
    msg = {"role": "user", "content": "Hello"}
    assert has_file_or_image(msg) == False


def test_has_file_or_image_with_image():
    msg = {
        "role": "user",
        "content": [
            {"type": "text", "text": "Hi"},
            {"type": "image_url", "image_url": {"url": "https://example.com/a.png"}}
        ]
    }
    assert has_file_or_image(msg) == True


def test_message_lines_multipart_keeps_text_parts():
    msg = {
        "role": "user",
        "content": [
            {"type": "text", "text": "Hello"},
            {"type": "file", "file_url": {"url": "https://example.com/a.pdf"}},
            {"type": "text", "text": "World"}
        ]
    }
    assert message_lines(msg) == "user:Hello\nuser:World\n"


def test_message_lines_default_role():
    assert message_lines({"content": "hi"}) == "user:hi\n"


def test_messages_prepare_single_turn():
    assert messages_prepare([{"role": "user", "content": "hi"}]) == "user:hi\n"


def test_messages_prepare_two_messages_no_injection():
    messages = [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "hi"},
    ]
    assert messages_prepare(messages) == "system:be brief\nuser:hi\n"


def test_messages_prepare_injects_attention_prompt():
    messages = [
        {"role": "user", "content": "q1"},
        {"role": "assistant", "content": "a1"},
        {"role": "user", "content": "q2"},
    ]
    result = messages_prepare(messages)
    assert result == f"user:q1\nassistant:a1\nsystem:{TEXT_ATTENTION_PROMPT}\nuser:q2\n"
    # Input is not mutated
    assert len(messages) == 3


def test_messages_prepare_injects_file_prompt():
    messages = [
        {"role": "user", "content": "q1"},
        {"role": "assistant", "content": "a1"},
        {"role": "user", "content": [
            {"type": "text", "text": "read this"},
            {"type": "file", "file_url": {"url": "https://example.com/a.pdf"}}
        ]},
    ]
    assert f"system:{FILE_ATTENTION_PROMPT}\nuser:read this\n" in messages_prepare(messages)


def test_token_split():
    assert token_split("Bearer a-1, b-2,") == ["a-1", "b-2"]
    assert pick_token("Bearer a-1") == "a-1"
    assert pick_token("Bearer ") is None


def test_message_lines_null_content():
    assert message_lines({"role": "assistant", "content": None}) == "assistant:\n"
    assert message_lines({"role": "user"}) == "user:\n"
