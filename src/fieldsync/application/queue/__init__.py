"""
Queue Module - Durable storage of operations awaiting delivery.
"""

from .store import DurableQueueStore

__all__ = ["DurableQueueStore"]
