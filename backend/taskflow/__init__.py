"""Taskflow backend: authentication and session lifecycle service.

Provide convenient access to :func:`taskflow.factory.create_app` so callers
can ``from taskflow import create_app``.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
