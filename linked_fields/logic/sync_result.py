"""Outcome of a sync call: the data-quality warnings raised along the way.

Anomalies in a submission (a row claiming the wrong collection, a funding
type without an amount) skip the offending item rather than failing the
whole sync. Each one is logged and also kept here so callers and tests can
inspect them without capturing log output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List


@dataclass
class SyncResult:
    warnings: List[str] = field(default_factory=list)

    def warn(self, logger: logging.Logger, message: str, **context: Any) -> None:
        self.warnings.append(message)
        if context:
            details = " ".join(f"{key}={value!r}" for key, value in context.items())
            logger.warning("%s %s", message, details)
        else:
            logger.warning("%s", message)

    def merge(self, other: "SyncResult") -> "SyncResult":
        self.warnings.extend(other.warnings)
        return self


__all__ = ["SyncResult"]
