from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display with tqdm (TTY only).

ProgressTracker is a ProgressCallback: the loader calls it with
(percent, message) at 0 / 50 / 75 / 100. In non-TTY environments (CI,
pipes) no bar is created and calls are no-ops.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Percentage progress bar for loading one file."""

    def __init__(self, *, description: str = "Loading") -> None:
        self.description = description
        self.percent = 0
        self.last_message = ""

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=100,
                desc=description,
                unit="%",
                disable=False,
                leave=False,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def __call__(self, percent: int, message: str) -> None:
        """Move the bar to `percent` (never backwards) and show `message`."""
        percent = max(0, min(100, percent))
        delta = percent - self.percent
        self.last_message = message
        if delta > 0:
            self.percent = percent
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({message})")
            if delta > 0:
                self.pbar.update(delta)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
