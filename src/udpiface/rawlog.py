from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)


class RawLogger:
    """
    Appends raw interface traffic to binary files.

    Writes are ignored until start() is called. With max_size set, a write that
    would push the current file past it rolls over to a new file first.
    """

    def __init__(self, name: str, direction: str, log_directory: str | Path, max_size: int | None = None):
        self.name = name
        self.direction = direction
        self.log_directory = Path(log_directory)
        self.max_size = max_size
        self._lock = threading.Lock()
        self._file: BinaryIO | None = None
        self._filename: Path | None = None
        self._size = 0
        self._file_count = 0

    @property
    def logging_enabled(self) -> bool:
        return self._file is not None

    @property
    def filename(self) -> Path | None:
        return self._filename

    def start(self) -> None:
        with self._lock:
            self._open_file()

    def stop(self) -> None:
        with self._lock:
            self._close_file()

    def write(self, data: bytes) -> None:
        with self._lock:
            if self._file is None:
                return
            if self.max_size is not None and self._size > 0 and self._size + len(data) > self.max_size:
                self._open_file()
            self._file.write(data)
            self._file.flush()
            self._size += len(data)

    def _open_file(self) -> None:
        self._close_file()
        self.log_directory.mkdir(parents=True, exist_ok=True)
        self._file_count += 1
        stamp = time.strftime("%Y_%m_%d_%H_%M_%S")
        path = self.log_directory / f"{stamp}_{self.name}_{self.direction}.bin"
        # rolling within the same second must not reuse the file
        if path.exists():
            path = path.with_name(f"{path.stem}_{self._file_count}.bin")
        self._file = open(path, "ab")
        self._filename = path
        self._size = 0
        logger.info("raw %s log opened: %s", self.direction, path)

    def _close_file(self) -> None:
        if self._file is None:
            return
        self._file.close()
        logger.info("raw %s log closed: %s", self.direction, self._filename)
        self._file = None


class RawLoggerPair:
    def __init__(self, name: str, log_directory: str | Path, max_size: int | None = None):
        self.read_logger = RawLogger(name, "read", log_directory, max_size)
        self.write_logger = RawLogger(name, "write", log_directory, max_size)

    def start(self) -> None:
        self.read_logger.start()
        self.write_logger.start()

    def stop(self) -> None:
        self.read_logger.stop()
        self.write_logger.stop()
