"""Logging and timing helpers for the LOD merge."""

from .logging_utils import setup_logging, Timer, TimingStats

__all__ = ['setup_logging', 'Timer', 'TimingStats']
