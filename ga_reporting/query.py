from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any, Mapping, Optional, Union

DateLike = Union[date, str]


def format_date(value: DateLike) -> str:
    """Render a date for the Core Reporting API (YYYY-MM-DD, or a relative
    value such as 'today' / '7daysAgo' passed through untouched)."""
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    return value


@dataclass(frozen=True)
class Query:
    """One Core Reporting request, optionally tagged with a batch correlation key."""

    ids: str
    start_date: DateLike
    end_date: DateLike
    metrics: str
    options: Mapping[str, Any] = field(default_factory=dict)
    key: Optional[str] = None

    def __post_init__(self):
        if self.options is None:
            object.__setattr__(self, "options", {})
        for name in ("ids", "start_date", "end_date", "metrics"):
            if not getattr(self, name):
                raise ValueError(f"Query.{name} must not be empty")
        if self.key is not None and (not isinstance(self.key, str) or not self.key):
            raise ValueError(f"Query.key must be a non-empty string, got {self.key!r}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Query":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise TypeError(f"Unknown query fields: {', '.join(sorted(unknown))}")
        return cls(**data)

    def arguments(self) -> dict[str, Any]:
        """Keyword arguments for Analytics.query, without the correlation key."""
        return {
            "ids": self.ids,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "metrics": self.metrics,
            "options": dict(self.options),
        }
