"""
Structured per-iteration events.

Controllers never print. They hand an `IterationEvent` to an optional
callback supplied by the caller and render the same event through the
standard `logging` module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

EventSink = Callable[["IterationEvent"], None]


@dataclass(frozen=True)
class IterationEvent:
    source: str
    nit: int
    numE: int
    numdE: int
    residuals: Tuple[float, ...]
    accepted: bool = True
    step: Optional[float] = None
    next_step: Optional[float] = None
    info: dict = field(default_factory=dict)

    def format(self) -> str:
        res = "  ".join(f"{r:1.2e}" for r in self.residuals)
        out = f"{self.source}: {self.nit:4d} | {res}"
        if not self.accepted:
            out += "  (rejected)"
        if self.next_step is not None:
            out += f"  h={self.next_step:1.2e}"
        return out


def emit(
    event: IterationEvent,
    callback: Optional[EventSink],
    logger: logging.Logger,
    verbose: int,
) -> None:
    if callback is not None:
        callback(event)
    level = logging.INFO if verbose >= 2 else logging.DEBUG
    logger.log(level, event.format())
