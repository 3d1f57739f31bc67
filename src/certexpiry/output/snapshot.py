"""File snapshot of the last rendered output."""

import os
import tempfile
import time
from datetime import timedelta
from pathlib import Path

from certexpiry.core.logging import get_logger

DEFAULT_MAX_AGE = timedelta(minutes=60)


class SnapshotCache:
    """Stores rendered output and replays it while it is fresh."""

    def __init__(self, path: Path, max_age: timedelta = DEFAULT_MAX_AGE) -> None:
        self.path = Path(path)
        self.max_age = max_age
        self.logger = get_logger("snapshot")

    def age(self) -> timedelta | None:
        """Age of the stored snapshot, or None if there is none."""
        try:
            mtime = self.path.stat().st_mtime
        except FileNotFoundError:
            return None
        return timedelta(seconds=max(0.0, time.time() - mtime))

    def is_fresh(self) -> bool:
        age = self.age()
        return age is not None and age < self.max_age

    def load(self) -> str | None:
        """Return the stored text verbatim if it is younger than ``max_age``."""
        if not self.is_fresh():
            return None
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        self.logger.debug("snapshot_replayed", path=str(self.path))
        return text

    def store(self, text: str) -> None:
        """Replace the snapshot atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        self.logger.debug("snapshot_stored", path=str(self.path))
