from agentbridge.helpers.factory import create_message, decode, derive_message, encode

__all__ = [
    "create_message",
    "decode",
    "derive_message",
    "encode",
]
