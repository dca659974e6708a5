"""Abstract source interface for network ingestion."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from agriprice.schemas.prices import DataSource


class BaseSource(ABC):
    """Abstract base class for upstream sources."""

    name: DataSource

    @abstractmethod
    async def fetch(self) -> List[Dict[str, Any]]:
        """Fetch raw records from upstream."""

    @staticmethod
    def filter_incremental(records: List[Dict[str, Any]], checkpoint: Optional[datetime]) -> List[Dict[str, Any]]:
        if not checkpoint:
            return records
        return [rec for rec in records if rec.get("date") and rec["date"] >= checkpoint]
