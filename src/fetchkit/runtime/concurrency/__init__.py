"""Concurrency helpers: sync/async interop for the native runtime."""

from __future__ import annotations

from .interop import run_sync

__all__ = ["run_sync"]
