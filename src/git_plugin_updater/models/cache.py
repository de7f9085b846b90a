"""Update cache snapshot model."""

from __future__ import annotations

from dataclasses import dataclass, field

from git_plugin_updater.models.repo import UpdateRecord


@dataclass(frozen=True)
class CacheEntry:
    records: dict[str, UpdateRecord] = field(default_factory=dict)
    created_at: float = 0.0
    ttl: float = 0.0

    def age(self, now: float) -> float:
        return now - self.created_at

    def is_stale(self, now: float, ttl: float | None = None) -> bool:
        """True once the entry has lived for its time-to-live (or ``ttl`` if given).

        An entry stamped in the future (clock skew) is stale as well.
        """
        limit = self.ttl if ttl is None else ttl
        age = self.age(now)
        return age < 0 or age >= limit

    def to_dict(self) -> dict:
        return {
            "created_at": self.created_at,
            "ttl": self.ttl,
            "records": {key: rec.to_dict() for key, rec in self.records.items()},
        }

    @classmethod
    def from_dict(cls, d: dict) -> CacheEntry | None:
        """Rebuild an entry from storage, returning None for anything unusable."""
        if not isinstance(d, dict):
            return None
        records_raw = d.get("records")
        if not isinstance(records_raw, dict):
            return None
        try:
            created_at = float(d.get("created_at", 0.0))
            ttl = float(d.get("ttl", 0.0))
        except (TypeError, ValueError):
            return None
        records = {
            str(key): UpdateRecord.from_dict(value)
            for key, value in records_raw.items()
            if isinstance(value, dict)
        }
        return cls(records=records, created_at=created_at, ttl=ttl)
