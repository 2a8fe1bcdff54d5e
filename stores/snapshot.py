"""
Snapshot file persistence.
Whole-file JSON snapshots for the in-memory stores. File I/O runs in the
default executor. Writes are best effort: a failed write is logged and
reported as False, never raised.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Optional, Union

from utils import persistence_logger
from utils.exceptions import PersistenceError, ErrorCodes


class SnapshotFile:
    """单个 JSON 快照文件"""

    def __init__(self, path: Union[str, Path], name: str = "snapshot"):
        self.path = Path(path)
        self.name = name

    def exists(self) -> bool:
        return self.path.is_file()

    @property
    def tmp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    async def load(self) -> Optional[Any]:
        """读取快照；文件不存在或内容损坏时返回 None"""
        if not self.path.exists():
            persistence_logger.info(f"[Persistence] No existing {self.name} found at {self.path}")
            return None

        loop = asyncio.get_running_loop()
        try:
            data = await loop.run_in_executor(None, self._read)
        except PersistenceError as e:
            persistence_logger.error(f"[Persistence] Failed to load {self.name}: {e} {e.context}")
            return None

        persistence_logger.info(f"[Persistence] {self.name} loaded from {self.path}")
        return data

    async def save(self, data: Any) -> bool:
        """整文件覆盖写入，先写临时文件再原子替换

        data 需在调用方的事件循环内构建完成，这里只负责落盘。
        """
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._write, data)
        except PersistenceError as e:
            persistence_logger.error(f"[Persistence] Error saving {self.name}: {e} {e.context}")
            return False

        persistence_logger.info(f"[Persistence] {self.name} saved to {self.path}")
        return True

    def _read(self) -> Any:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(
                f"Cannot read {self.name}",
                ErrorCodes.PERSISTENCE_READ_FAILED,
                {"path": str(self.path), "error": str(e)}
            ) from e

    def _write(self, data: Any) -> None:
        tmp_path = self.tmp_path
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            try:
                if tmp_path.exists():
                    tmp_path.unlink()
            except OSError:
                pass
            raise PersistenceError(
                f"Cannot write {self.name}",
                ErrorCodes.PERSISTENCE_WRITE_FAILED,
                {"path": str(self.path), "error": str(e)}
            ) from e
