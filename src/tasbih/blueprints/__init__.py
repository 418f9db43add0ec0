"""Blueprint exports."""

from . import metrics, tasbih, webhooks

__all__ = [
    "metrics",
    "tasbih",
    "webhooks",
]
