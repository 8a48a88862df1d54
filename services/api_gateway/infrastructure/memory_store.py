"""In-memory feedback document store."""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4


class InMemoryFeedbackStore:
    """Append-only feedback collection ordered by incident timestamp."""

    def __init__(self, documents: list[dict[str, Any]] | None = None) -> None:
        self._documents: list[dict[str, Any]] = []
        for document in documents or []:
            self._documents.append({"id": str(uuid4()), **document})

    async def list_feedback(self) -> list[dict[str, Any]]:
        return sorted(
            (deepcopy(document) for document in self._documents),
            key=lambda item: str(item.get("timestamp") or ""),
            reverse=True,
        )

    async def add_feedback(self, document: dict[str, Any]) -> datetime:
        created_at = datetime.now(timezone.utc)
        self._documents.append(
            {**document, "id": str(uuid4()), "created_at": created_at}
        )
        return created_at
