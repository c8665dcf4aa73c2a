"""Serialization of document trees to markup text."""

from .serializer import Serializer

__all__ = [
    "Serializer",
]
