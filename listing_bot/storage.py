"""JSON-file backed sets that survive restarts."""

from __future__ import annotations

import json
import os
import tempfile
from typing import Iterable, Set, Tuple, Union

Entry = Union[str, int]

STR_ENTRIES: Tuple[type, ...] = (str,)
CHAT_ID_ENTRIES: Tuple[type, ...] = (str, int)


class PersistentSet:
    """A named set of scalars stored as a JSON array.

    ``load`` never raises: a missing or unreadable file, or one holding
    entries outside ``entry_types``, means "nothing known yet". ``save``
    rewrites the whole file through a temporary file and ``os.replace`` so a
    crash mid-write leaves the previous content intact.
    """

    def __init__(
        self, path: str, name: str, logger, entry_types: Tuple[type, ...] = STR_ENTRIES
    ) -> None:
        self._path = path
        self._name = name
        self._logger = logger
        self._entry_types = entry_types

    @property
    def path(self) -> str:
        return self._path

    def _is_entry(self, value) -> bool:
        # bool is an int subclass but never a valid id.
        return isinstance(value, self._entry_types) and not isinstance(value, bool)

    def load(self) -> Set[Entry]:
        if not os.path.exists(self._path):
            self._logger.info("未找到 %s 文件 %s，从空集合开始", self._name, self._path)
            return set()
        try:
            with open(self._path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError):
            self._logger.warning(
                "读取 %s 文件失败，从空集合开始 path=%s", self._name, self._path, exc_info=True
            )
            return set()

        if not isinstance(data, list) or not all(self._is_entry(value) for value in data):
            self._logger.warning(
                "%s 文件格式不正确（条目类型不符），从空集合开始 path=%s",
                self._name,
                self._path,
            )
            return set()

        values = set(data)
        self._logger.info("已加载 %s 条 %s", len(values), self._name)
        return values

    def save(self, values: Iterable[Entry]) -> bool:
        """Atomically rewrite the store. Returns False if the write failed."""
        ordered = sorted(values, key=str)
        directory = os.path.dirname(os.path.abspath(self._path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{os.path.basename(self._path)}.", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(ordered, handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._path)
        except (OSError, TypeError, ValueError):
            self._logger.exception("保存 %s 文件失败 path=%s", self._name, self._path)
            if tmp_path is not None and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    self._logger.warning("清理临时文件失败 path=%s", tmp_path)
            return False

        self._logger.info("已保存 %s 条 %s", len(ordered), self._name)
        return True
