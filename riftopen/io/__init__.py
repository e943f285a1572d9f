"""Byte sources feeding the encoder."""

from .source import ByteSource, DEFAULT_CHUNK_SIZE

__all__ = ["ByteSource", "DEFAULT_CHUNK_SIZE"]
