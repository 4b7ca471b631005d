from __future__ import annotations

import logging
import os
import pickle
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, List, Sequence

from .errors import StorageError
from .models import Item

if TYPE_CHECKING:
    from .feed import FeedFetcher

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Keeps the last known item list in one local file.

    The encoding is private (pickled ``(source, [tags])`` tuples); it is not
    meant to be read by anything but this class. Writes go to a temporary
    file in the same directory and are renamed into place, so a crash
    mid-save leaves the previous snapshot untouched.
    """

    def __init__(self, path: Path | str = "four.bin") -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def save(self, items: Sequence[Item]) -> None:
        rows = [(item.source, list(item.tags)) for item in items]
        directory = self.path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "wb", dir=directory, prefix=f".{self.path.name}.", suffix=".tmp", delete=False
            ) as fh:
                tmp_name = fh.name
                pickle.dump(rows, fh, protocol=pickle.HIGHEST_PROTOCOL)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except (OSError, pickle.PicklingError) as e:
            raise StorageError(f"Failed to write snapshot {self.path}: {e}", details={"path": str(self.path)}) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("Could not remove temporary snapshot %s", tmp_name)
        logger.info("Saved %d items to snapshot %s", len(rows), self.path)

    def load(self) -> List[Item]:
        try:
            data = self.path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read snapshot {self.path}: {e}", details={"path": str(self.path)}) from e

        try:
            rows = pickle.loads(data)
        except Exception as e:  # unpickling can raise nearly anything on garbage input
            raise StorageError(f"Snapshot {self.path} is not decodable", details={"path": str(self.path)}) from e

        if not isinstance(rows, list):
            raise StorageError(f"Snapshot {self.path} has unexpected shape", details={"path": str(self.path)})
        items: List[Item] = []
        for i, row in enumerate(rows):
            if (
                not isinstance(row, tuple)
                or len(row) != 2
                or not isinstance(row[0], str)
                or not isinstance(row[1], list)
                or not all(isinstance(t, str) for t in row[1])
            ):
                raise StorageError(
                    f"Snapshot {self.path} has a malformed record at position {i}",
                    details={"path": str(self.path), "position": i},
                )
            items.append(Item.create(row[0], row[1]))
        logger.info("Loaded %d items from snapshot %s", len(items), self.path)
        return items

    async def load_or_fetch(self, fetcher: "FeedFetcher") -> List[Item]:
        """Return the local snapshot, or fetch and persist one if there is none.

        This is the startup seeding path: fetch and save failures propagate.
        A snapshot that exists but cannot be decoded is replaced by a fresh
        fetch.
        """
        if self.exists():
            try:
                return self.load()
            except StorageError:
                logger.exception("Snapshot %s is unusable; falling back to the feed", self.path)

        logger.info("No usable snapshot at %s; fetching from the feed", self.path)
        items = await fetcher.fetch()
        self.save(items)
        return items
