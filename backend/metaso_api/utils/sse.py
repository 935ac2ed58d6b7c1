import orjson

SSE_DONE_FRAME = "data: [DONE]\n\n"


def format_sse_data(payload: dict) -> str:
    """Format a payload as an unnamed SSE data record"""
    return f"data: {orjson.dumps(payload).decode()}\n\n"
