"""Serialization module."""

from .json_serializer import (
    EnvelopeFormat,
    JsonObjectWriter,
    dumps,
    format_duration,
    format_time,
    get_format,
    register_format,
    serialize,
    serialize_batch,
)

__all__ = [
    "EnvelopeFormat",
    "JsonObjectWriter",
    "dumps",
    "format_duration",
    "format_time",
    "get_format",
    "register_format",
    "serialize",
    "serialize_batch",
]
