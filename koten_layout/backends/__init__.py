"""
Inference backends for koten_layout.

Kept separate so pre/post-processing can be used without installing an
inference runtime.
"""

from __future__ import annotations

__all__ = []
