"""Outcome of a batch flow: per-action counters plus per-item failures."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ItemFailure:
    """One entity (product, order, SKU or webhook topic) that failed."""

    entity_id: str
    error_type: str
    message: str
    details: Optional[Dict[str, Any]] = None
    occurred_at: datetime = field(default_factory=_now)

    @classmethod
    def from_exception(cls, entity_id: str, exc: BaseException) -> "ItemFailure":
        return cls(
            entity_id=entity_id,
            error_type=type(exc).__name__,
            message=str(exc),
            details=getattr(exc, "details", None) or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "error_type": self.error_type,
            "message": self.message,
            "details": self.details,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass
class SyncResult:
    """
    Counters for one run of a bulk flow.

    A run that failed some items is still a completed run; ``success`` only
    says whether every item went through.
    """

    operation: str = "sync"
    total_items: int = 0
    created_count: int = 0
    updated_count: int = 0
    skipped_count: int = 0
    errors: List[ItemFailure] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    start_time: datetime = field(default_factory=_now)
    end_time: Optional[datetime] = None

    @property
    def failed_count(self) -> int:
        return len(self.errors)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def processed_count(self) -> int:
        return self.created_count + self.updated_count + self.skipped_count

    @property
    def duration(self) -> float:
        """Seconds from start to ``finalize()``; 0 while still running."""
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def success_rate(self) -> float:
        if not self.total_items:
            return 0.0
        return self.processed_count * 100 / self.total_items

    def add_error(self, entity_id: str, error_type: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.errors.append(ItemFailure(entity_id, error_type, message, details))

    def record_failure(self, entity_id: str, exc: BaseException):
        """Count *exc* as the failure of *entity_id*."""
        self.errors.append(ItemFailure.from_exception(entity_id, exc))

    def finalize(self):
        self.end_time = _now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "success": self.success,
            "total_items": self.total_items,
            "created_count": self.created_count,
            "updated_count": self.updated_count,
            "skipped_count": self.skipped_count,
            "failed_count": self.failed_count,
            "success_rate": round(self.success_rate, 2),
            "duration": round(self.duration, 2),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "errors": [error.to_dict() for error in self.errors],
            "metadata": self.metadata,
        }

    def get_summary(self, max_errors: int = 5) -> str:
        """Multi-line summary for logs and the CLI."""
        lines = [
            f"{self.operation} completed in {self.duration:.2f}s",
            f"Total items: {self.total_items}",
            f"Created: {self.created_count}",
            f"Updated: {self.updated_count}",
            f"Skipped: {self.skipped_count}",
            f"Failed: {self.failed_count}",
            f"Success rate: {self.success_rate:.2f}%",
        ]
        if self.errors:
            lines.append(f"\nErrors ({self.failed_count}):")
            lines.extend(f"  - {e.entity_id}: {e.message}" for e in self.errors[:max_errors])
            hidden = self.failed_count - max_errors
            if hidden > 0:
                lines.append(f"  ... and {hidden} more errors")
        return "\n".join(lines)
