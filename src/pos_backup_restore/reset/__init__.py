"""
Factory reset modules.

This package wipes the destructible collections after a verified backup.
"""

from .orchestrator import ResetOrchestrator, ResetResult
from .manager import ResetManager

__all__ = [
    "ResetOrchestrator",
    "ResetResult",
    "ResetManager",
]
