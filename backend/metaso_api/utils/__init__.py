from metaso_api.utils.messages import messages_prepare
from metaso_api.utils.sse import SSE_DONE_FRAME, format_sse_data

__all__ = ["SSE_DONE_FRAME", "format_sse_data", "messages_prepare"]
