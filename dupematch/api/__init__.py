"""
API package for dupematch.

Provides the Flask routes for recognition and reference management.
"""

from __future__ import annotations

from .routes import api

__all__ = ['api']
