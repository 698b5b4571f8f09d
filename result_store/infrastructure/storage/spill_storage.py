"""Spill storage - output payloads kept as files under a base directory

One file per record, named by the record id. The table keeps the file's
``file://`` URI as the record's payload. Files whose name ends in ``gz`` are
gzip streams and are decompressed on read.
"""

from __future__ import annotations

import gzip
import logging
from pathlib import Path
from typing import BinaryIO
from urllib.parse import urlparse
from urllib.request import url2pathname

from result_store.domain.exceptions import SpillError

logger = logging.getLogger(__name__)

SUFFIX_GZIP = "gz"


class SpillStorage:
    """Filesystem side of the storage policy"""

    def __init__(self, base_directory: Path):
        self.base_directory = Path(base_directory)

    def ensure_directory(self) -> None:
        self.base_directory.mkdir(parents=True, exist_ok=True)
        logger.info('Using "%s" as base directory for results database', self.base_directory)

    def path_for(self, record_id: str) -> Path:
        """Return the spill file path of ``record_id``.

        Raises:
            SpillError: the id is not usable as a plain file name
        """
        if not record_id or Path(record_id).name != record_id or record_id in {".", ".."}:
            raise SpillError(f"Record id {record_id!r} cannot be used as a file name")
        return self.base_directory / record_id

    def write(self, record_id: str, data: bytes) -> bytes:
        """Write a new spill file and return the marker to store in the table.

        The file must not exist yet; an existing file belongs to another
        record with the same id.

        Raises:
            SpillError: the file exists or could not be written
        """
        path = self.path_for(record_id)
        try:
            self.base_directory.mkdir(parents=True, exist_ok=True)
            with path.open("xb") as fh:
                fh.write(data)
        except OSError as e:
            raise SpillError(f"Failed to write output data for {record_id} to {path}: {e}") from e
        logger.debug("Spilled %d bytes of %s to %s", len(data), record_id, path)
        return self.marker_for(path)

    def overwrite(self, path: Path, data: bytes) -> None:
        """Replace the content of an existing spill file.

        Raises:
            SpillError: the file could not be written
        """
        try:
            path.write_bytes(data)
        except OSError as e:
            raise SpillError(f"Failed to overwrite spilled data at {path}: {e}") from e

    def open(self, path: Path) -> BinaryIO:
        """Open a spill file for reading, decompressing gzip files.

        Raises:
            SpillError: the file could not be opened
        """
        try:
            if str(path).endswith(SUFFIX_GZIP):
                return gzip.open(path, "rb")  # type: ignore[return-value]
            return path.open("rb")
        except OSError as e:
            raise SpillError(f"Failed to open spilled data at {path}: {e}") from e

    def remove(self, record_id: str) -> bool:
        """Delete the spill file of ``record_id``; a missing file is not an error."""
        try:
            path = self.path_for(record_id)
        except SpillError:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def resolve(self, stored_value: bytes | None) -> Path | None:
        """Return the existing file a stored table value points at, if any."""
        path = self.path_from_marker(stored_value)
        if path is None or not path.is_file():
            return None
        return path

    @staticmethod
    def marker_for(path: Path) -> bytes:
        return path.resolve().as_uri().encode("ascii")

    def path_from_marker(self, stored_value: bytes | None) -> Path | None:
        """Return the spill file a stored value names, if it is one of ours.

        Only ``file://`` URIs of files directly inside the base directory
        count as markers; any other value is payload.
        """
        if not stored_value:
            return None
        try:
            text = stored_value.decode("ascii").strip()
        except UnicodeDecodeError:
            return None
        parsed = urlparse(text)
        if parsed.scheme != "file" or not parsed.path:
            return None
        path = Path(url2pathname(parsed.path)).resolve()
        if path.parent != self.base_directory.resolve():
            return None
        return path
