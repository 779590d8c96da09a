"""Build a static JSON API from a daily options-chain CSV feed."""

from __future__ import annotations

__version__ = "0.1.0"
