"""Transcript stores."""

from .base import TranscriptStore
from .memory import InMemoryStore
from .backend import BackendStore

__all__ = ["TranscriptStore", "InMemoryStore", "BackendStore"]
