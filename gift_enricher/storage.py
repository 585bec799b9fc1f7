"""Load and save the gift catalog document."""

import json
import os
import tempfile
from pathlib import Path
from typing import Union

import structlog
from pydantic import ValidationError

from .models import GiftsData

logger = structlog.get_logger(__name__, service="enricher")


class CatalogLoadError(Exception):
    """The catalog document could not be read or parsed."""


def dumps_catalog(catalog: GiftsData) -> str:
    """
    Serialize the catalog the way it's kept under version control.

    Two-space indentation, non-ASCII kept as-is, trailing newline. Objects
    keep the key order they were loaded with.
    """
    return json.dumps(catalog.to_document(), indent=2, ensure_ascii=False) + "\n"


class CatalogStorage:
    """Read the whole catalog into memory and write it back in full."""

    def __init__(self, path: Union[str, Path]):
        """
        Initialize storage.

        Args:
            path: Path to the catalog JSON document (e.g. public/data/gifts.json)
        """
        self.path = Path(path)
        logger.debug("storage_initialized", path=str(self.path))

    def load(self) -> GiftsData:
        """
        Load and validate the catalog.

        Raises:
            CatalogLoadError: If the file is missing, unreadable, not JSON,
                or doesn't have the catalog shape
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise CatalogLoadError(f"Cannot read catalog {self.path}: {e}") from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise CatalogLoadError(f"Catalog {self.path} is not valid JSON: {e}") from e

        try:
            catalog = GiftsData.from_document(data)
        except ValidationError as e:
            raise CatalogLoadError(f"Catalog {self.path} has an invalid shape: {e}") from e

        logger.info(
            "catalog_loaded",
            path=str(self.path),
            gifts=len(catalog.gifts),
            links=sum(len(gift.links) for gift in catalog.gifts),
        )
        return catalog

    def save(self, catalog: GiftsData) -> None:
        """
        Write the catalog atomically (temp file in the same directory + rename).
        """
        content = dumps_catalog(catalog)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        temp_fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=".tmp_",
            suffix=".json",
        )
        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
            # mkstemp creates 0600 files; keep the catalog's existing mode
            if self.path.exists():
                os.chmod(temp_path, self.path.stat().st_mode & 0o777)
            os.replace(temp_path, self.path)
        except BaseException:
            try:
                os.unlink(temp_path)
            except FileNotFoundError:
                pass
            raise

        logger.info("catalog_saved", path=str(self.path), bytes=len(content.encode("utf-8")))
