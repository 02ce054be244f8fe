"""
Screenshot artifact storage.

The coordinator hands over raw image bytes and gets back the URL under
which the HTTP surface serves them.
"""

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class ScreenshotStore(Protocol):
    def save(self, filename: str, data: bytes) -> str:
        ...


class LocalScreenshotStore:
    """Stores screenshots on local disk"""

    def __init__(self, root_dir: str, url_prefix: str = "/screenshots"):
        self.root_dir = Path(root_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def resolve(self, filename: str) -> Path:
        """Absolute path for a stored filename. Rejects paths escaping the root."""
        root = self.root_dir.resolve()
        path = (root / filename).resolve()
        if root not in path.parents:
            raise ValueError(f"Invalid screenshot path: {filename}")
        return path

    def save(self, filename: str, data: bytes) -> str:
        path = self.resolve(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        logger.debug(f"Saved screenshot {path}")
        return f"{self.url_prefix}/{filename}"
