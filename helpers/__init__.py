"""Helper utilities for the typing engine.

This package contains small utilities that are used across the engine to
provide common functionality.
"""

from .debug_util import DebugUtil  # noqa: F401
