"""File-backed store persisting every collection to a single JSON file."""

import json
import os
import tempfile
from pathlib import Path

import structlog

from taskrecon.storage.memory import COLLECTIONS, InMemoryDatabase

logger = structlog.get_logger(__name__)


class JsonFileDatabase(InMemoryDatabase):
    """In-memory stores loaded from and saved to a JSON file.

    The file holds one object per collection, each a list of documents in
    their camelCase wire form. Every write rewrites the file atomically.
    """

    def __init__(self, path: Path) -> None:
        """Initialize and load the database.

        Args:
            path: JSON file location. Created on first write if missing.
        """
        super().__init__()
        self.path = Path(path)
        self._loading = False
        self.load()

    def load(self) -> None:
        """Load collections from disk, starting empty if the file is missing."""
        if not self.path.exists():
            return

        with open(self.path, "r") as f:
            data = json.load(f)

        self._loading = True
        try:
            for name, model in COLLECTIONS.items():
                documents = [model.model_validate(raw) for raw in data.get(name, [])]
                self.collections[name] = {doc.id: doc for doc in documents}
        finally:
            self._loading = False

        logger.debug(
            "json_store_loaded",
            path=str(self.path),
            counts={name: len(docs) for name, docs in self.collections.items()},
        )

    def _persist(self) -> None:
        if self._loading:
            return
        self.save()

    def save(self) -> None:
        """Save all collections using a temporary file and rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            name: [doc.model_dump(mode="json", by_alias=True) for doc in docs.values()]
            for name, docs in self.collections.items()
        }

        fd, temp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".taskrecon_", suffix=".json.tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(payload, f, indent=2)
            os.replace(temp_path, self.path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise
