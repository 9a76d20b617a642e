"""Local file storage — a flat directory of uploaded files."""

import logging
import shutil
import time
import uuid
from pathlib import Path
from typing import BinaryIO

from app.errors import NotFound

logger = logging.getLogger(__name__)


class LocalStorage:
    """Stores every upload flat under ``root`` with a collision-resistant name."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def generate_name(original_name: str | None) -> str:
        ext = Path(original_name or "").suffix.lower()
        return f"{int(time.time() * 1000)}-{uuid.uuid4().hex}{ext}"

    def path_for(self, name: str) -> Path:
        path = (self.root / name).resolve()
        if path.parent != self.root.resolve():
            raise NotFound("File not found")
        return path

    def save(self, stream: BinaryIO, original_name: str | None) -> str:
        """Write ``stream`` to a freshly named file and return the stored name."""
        self.ensure_root()
        name = self.generate_name(original_name)
        with open(self.root / name, "wb") as out:
            shutil.copyfileobj(stream, out)
        logger.debug("Stored %s as %s", original_name, name)
        return name

    def exists(self, name: str) -> bool:
        try:
            return self.path_for(name).is_file()
        except NotFound:
            return False

    def delete(self, name: str | None) -> bool:
        """Remove a stored file. A missing file is not an error."""
        if not name:
            return False
        try:
            path = self.path_for(name)
        except NotFound:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError:
            logger.warning("Could not delete stored file %s", name, exc_info=True)
            return False
        logger.debug("Deleted stored file %s", name)
        return True
