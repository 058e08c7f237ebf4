from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class ConfigError(ValueError):
    """Invalid form configuration. Raised at startup, never while serving."""


class StoreError(OSError):
    """
    The submission store could not be read or written.

    `phase` is "lock" (the `<path>.lock` file could not be taken), "read" or "write";
    the underlying OS error is chained as `__cause__`.
    """

    def __init__(self, path: Union[str, Path], phase: str, message: Optional[str] = None) -> None:
        self.path = str(path)
        self.phase = phase
        super().__init__(message or f"failed to {phase} storage file {self.path}")
