"""File-per-document persistence for guides.

Guides live at ``<root>/<class>/<type>/<spec>/<author_id>.json``.  One file
per composite key makes upsert and existence checks trivial and lets the
bulk scan for a class/type read just two directories.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from ..core.classes import class_slug
from ..core.models import ActivityType, GuideDocument, Spec, utcnow
from ..errors import StorageFailure

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpsertResult:
    created: bool
    document: GuideDocument


class GuideStore:
    """JSON file store keyed by ``(class, type, spec, author)``.

    There is no locking: the last writer for a key wins.  Authors are part of
    the key so different authors never collide.
    """

    def __init__(self, root: str | Path = "guide_data/guides") -> None:
        self.root = Path(root)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    def _dir(
        self, activity_class: str, activity_type: ActivityType, spec: Spec
    ) -> Path:
        return (
            self.root
            / class_slug(activity_class)
            / ActivityType(activity_type).value
            / Spec(spec).value
        )

    def _path(
        self,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec,
        author_id: str,
    ) -> Path:
        return self._dir(activity_class, activity_type, spec) / f"{author_id}.json"

    def _read(self, path: Path) -> GuideDocument:
        with open(path, encoding="utf-8") as f:
            return GuideDocument.model_validate(json.load(f))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def find_by_key(
        self,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec,
        author_id: str,
    ) -> GuideDocument | None:
        path = self._path(activity_class, activity_type, spec, author_id)
        if not path.exists():
            return None
        try:
            return self._read(path)
        except (OSError, ValueError, ValidationError) as exc:
            log.exception("Failed to read guide %s", path)
            raise StorageFailure() from exc

    def find_all(
        self, activity_class: str, activity_type: ActivityType, spec: Spec
    ) -> list[GuideDocument]:
        directory = self._dir(activity_class, activity_type, spec)
        if not directory.is_dir():
            return []
        guides: list[GuideDocument] = []
        for path in sorted(directory.glob("*.json")):
            try:
                guides.append(self._read(path))
            except (OSError, ValueError, ValidationError):
                log.warning("Skipping unreadable guide file %s", path)
        return guides

    def find_all_for_class_type(
        self, activity_class: str, activity_type: ActivityType
    ) -> list[GuideDocument]:
        """All guides for a class and type across both specs."""
        return [
            guide
            for spec in (Spec.SUCCESSION, Spec.AWAKENING)
            for guide in self.find_all(activity_class, activity_type, spec)
        ]

    def exists(
        self,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec,
        author_id: str,
    ) -> bool:
        return self._path(activity_class, activity_type, spec, author_id).exists()

    def upsert(self, document: GuideDocument) -> UpsertResult:
        """Create or overwrite the guide stored under ``document.key``.

        An existing guide keeps its ``created_at`` and its origin guild; the
        origin is only filled in when the stored guide never had one.
        """
        path = self._path(*document.key)
        existing = self.find_by_key(*document.key)
        if existing is not None:
            update: dict[str, object] = {
                "created_at": existing.created_at,
                "updated_at": utcnow(),
            }
            if existing.origin_guild_id:
                update["origin_guild_id"] = existing.origin_guild_id
                update["origin_guild_name"] = existing.origin_guild_name
            document = document.model_copy(update=update)

        tmp = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(document.model_dump_json(indent=2))
            os.replace(tmp, path)
        except OSError as exc:
            log.exception("Failed to save guide %s", path)
            raise StorageFailure() from exc

        log.info(
            "Guide %s: %s", "updated" if existing else "created", path
        )
        return UpsertResult(created=existing is None, document=document)

    def delete(
        self,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec,
        author_id: str,
    ) -> bool:
        """Remove a guide.  Returns ``False`` if there was nothing to remove."""
        path = self._path(activity_class, activity_type, spec, author_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            log.exception("Failed to delete guide %s", path)
            raise StorageFailure() from exc
        log.info("Guide deleted: %s", path)
        return True
