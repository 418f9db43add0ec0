"""Service module exports."""

from . import (
    anti_abuse,
    bootstrap,
    counter,
    daily_buckets,
    goals,
    metrics,
    profiles,
    reports,
    sessions,
    sync,
    webhooks,
)

__all__ = [
    "anti_abuse",
    "bootstrap",
    "counter",
    "daily_buckets",
    "goals",
    "metrics",
    "profiles",
    "reports",
    "sessions",
    "sync",
    "webhooks",
]
