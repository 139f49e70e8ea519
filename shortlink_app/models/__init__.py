"""
Database models for the shortlink service.

URL holds the mapping and aggregate click counter; Click holds the
append-only per-redirect analytics events.
"""

from .url import URL
from .click import Click

__all__ = ["URL", "Click"]
