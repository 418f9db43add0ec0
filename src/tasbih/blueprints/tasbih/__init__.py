"""Counting, sync and report endpoints."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("tasbih", __name__)

from . import routes  # noqa: E402,F401

__all__ = ["bp"]
