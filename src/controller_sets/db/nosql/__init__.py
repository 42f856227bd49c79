from __future__ import annotations

from .base import Document, ModelProtocol

__all__ = [
    "Document",
    "ModelProtocol",
]
