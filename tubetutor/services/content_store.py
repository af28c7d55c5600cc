from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy.orm import Session

from tubetutor.models.ai_content import AIContent


class ContentStore(ABC):
    """
    Cache/persistence hook for generated content, keyed by
    (video_id, kind, variant). Payloads are the results' to_dict() form.
    """

    @abstractmethod
    def get(self, video_id: str, kind: str, variant: str = "") -> dict[str, Any] | None:
        ...

    @abstractmethod
    def put(self, video_id: str, kind: str, variant: str, payload: dict[str, Any], provider: str | None = None) -> None:
        ...

    @abstractmethod
    def delete(self, video_id: str, kind: str, variant: str | None = None) -> int:
        """Remove stored content; variant=None removes every variant of the kind."""
        ...


class InMemoryContentStore(ContentStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: dict[tuple[str, str, str], dict[str, Any]] = {}

    def get(self, video_id: str, kind: str, variant: str = "") -> dict[str, Any] | None:
        with self._lock:
            item = self._items.get((video_id, kind, variant))
            return dict(item) if item is not None else None

    def put(self, video_id: str, kind: str, variant: str, payload: dict[str, Any], provider: str | None = None) -> None:
        with self._lock:
            self._items[(video_id, kind, variant)] = dict(payload)

    def delete(self, video_id: str, kind: str, variant: str | None = None) -> int:
        with self._lock:
            keys = [k for k in self._items if k[0] == video_id and k[1] == kind and (variant is None or k[2] == variant)]
            for k in keys:
                del self._items[k]
            return len(keys)


class SqlContentStore(ContentStore):
    def __init__(self, db: Session) -> None:
        self.db = db

    def _row(self, video_id: str, kind: str, variant: str) -> AIContent | None:
        return (
            self.db.query(AIContent)
            .filter(AIContent.video_id == video_id, AIContent.kind == kind, AIContent.variant == variant)
            .first()
        )

    def get(self, video_id: str, kind: str, variant: str = "") -> dict[str, Any] | None:
        row = self._row(video_id, kind, variant)
        if not row or not row.content_json:
            return None
        try:
            payload = json.loads(row.content_json)
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None

    def put(self, video_id: str, kind: str, variant: str, payload: dict[str, Any], provider: str | None = None) -> None:
        row = self._row(video_id, kind, variant)
        if not row:
            row = AIContent(video_id=video_id, kind=kind, variant=variant)
            self.db.add(row)

        row.provider = provider
        row.content_json = json.dumps(payload, ensure_ascii=False)
        self.db.commit()

    def delete(self, video_id: str, kind: str, variant: str | None = None) -> int:
        q = self.db.query(AIContent).filter(AIContent.video_id == video_id, AIContent.kind == kind)
        if variant is not None:
            q = q.filter(AIContent.variant == variant)
        count = q.delete(synchronize_session=False)
        self.db.commit()
        return int(count or 0)
