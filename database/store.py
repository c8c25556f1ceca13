"""内存存储与基础设施管理。

本模块负责存储的底层基础设施，包括：
- 每种实体一张表（ID -> 记录 的映射）
- 每张表一个单调递增的 ID 计数器（从 1 开始，删除后也不复用）
- 清空与关闭

本模块不包含任何业务逻辑。数据只存在于进程内存中，进程退出即丢失。
"""
from typing import Any, Dict

from loguru import logger


class MemoryStore:
    """内存存储管理器。

    Attributes:
        TABLES: 所有表名。

    Example:
        ```python
        store = MemoryStore()
        new_id = store.next_id("clients")
        store.table("clients")[new_id] = record
        ```
    """

    TABLES = ("users", "clients", "properties", "meetings", "custom_fields")

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[int, Any]] = {}
        self._counters: Dict[str, int] = {}
        self._closed = False
        self._init_tables()

    def _init_tables(self) -> None:
        self._tables = {name: {} for name in self.TABLES}
        self._counters = {name: 0 for name in self.TABLES}

    def table(self, name: str) -> Dict[int, Any]:
        """获取指定表的 ID -> 记录 映射。

        Raises:
            KeyError: 表名不存在。
            RuntimeError: 存储已关闭。
        """
        if self._closed:
            raise RuntimeError("存储已关闭")
        return self._tables[name]

    def next_id(self, name: str) -> int:
        """分配下一个 ID（单调递增，永不复用）"""
        if name not in self._counters:
            raise KeyError(name)
        self._counters[name] += 1
        return self._counters[name]

    def reset(self) -> None:
        """清空所有表并重置计数器"""
        self._init_tables()
        logger.info("内存存储已清空")

    @property
    def is_closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """关闭存储，释放所有数据。调用后不应再使用此实例。"""
        if self._closed:
            return
        self._tables = {}
        self._counters = {}
        self._closed = True
        logger.info("内存存储已关闭")
