from .vertex import (
    AuthenticationError,
    EmptyResponseError,
    LLMError,
    LLMResponseError,
    LLMStatusError,
    LLMTransportError,
    Message,
    VertexClient,
)
from .smart_client import SmartClient

__all__ = [
    "VertexClient",
    "SmartClient",
    "Message",
    "LLMError",
    "AuthenticationError",
    "LLMTransportError",
    "LLMStatusError",
    "LLMResponseError",
    "EmptyResponseError",
]
