"""通用 CRUD 能力。

BaseCRUD 基于 MemoryStore 提供单表的增删改查，子类只需声明
表名、实体名与模型类型，并按需覆盖排序规则或添加领域查询。

所有读方法返回记录的副本，修改返回值不会影响存储中的数据。
"""
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from loguru import logger
from pydantic import BaseModel

from .models import utcnow
from .schemas import validate_insert, validate_update
from .store import MemoryStore


class BaseCRUD:
    """单表通用 CRUD。

    Attributes:
        table_name: 存储表名。
        entity: 实体名称，用于校验与日志。
        model: 持久化形态的模型类型。
    """

    table_name: str = ""
    entity: str = ""
    model: Type[BaseModel] = BaseModel
    _sort_descending: bool = False

    def __init__(self, store: MemoryStore) -> None:
        self.store = store

    # ================================================================
    # 内部工具
    # ================================================================

    def _table(self) -> Dict[int, Any]:
        return self.store.table(self.table_name)

    def _sort_key(self, record: Any) -> Tuple:
        """列表排序键，默认按创建顺序（ID 升序）"""
        return (record.id,)

    @staticmethod
    def _copy(record: Optional[BaseModel]) -> Optional[BaseModel]:
        return record.model_copy(deep=True) if record is not None else None

    def _coerce_insert(self, payload: Union[BaseModel, Dict[str, Any]]) -> BaseModel:
        if isinstance(payload, BaseModel):
            return payload
        return validate_insert(self.entity, payload)

    def _before_create(self, data: Dict[str, Any]) -> None:
        """创建前钩子（如唯一性校验），子类按需覆盖"""

    def _before_update(self, existing: BaseModel, changes: Dict[str, Any]) -> None:
        """更新前钩子，子类按需覆盖"""

    # ================================================================
    # CRUD
    # ================================================================

    def create(self, payload: Union[BaseModel, Dict[str, Any]]) -> BaseModel:
        """创建记录。

        分配下一个 ID，未提供的可选字段使用默认值（或 None），
        并写入当前时间作为 created_at。

        Args:
            payload: 已校验的写入模型，或待校验的原始字典。

        Returns:
            新建记录（副本）。

        Raises:
            InvalidInput: payload 为字典且校验失败。
        """
        data = self._coerce_insert(payload).model_dump()
        self._before_create(data)

        record_id = self.store.next_id(self.table_name)
        data["id"] = record_id
        if "created_at" in self.model.model_fields:
            data["created_at"] = utcnow()
        record = self.model.model_validate(data)

        self._table()[record_id] = record
        logger.info(f"已创建 {self.entity}: id={record_id}")
        return self._copy(record)

    def get_by_id(self, record_id: Optional[int]) -> Optional[BaseModel]:
        """按 ID 获取记录，不存在返回 None"""
        if record_id is None:
            return None
        return self._copy(self._table().get(record_id))

    def get_all(self, filters: Optional[Dict[str, Any]] = None,
                predicate: Optional[Callable[[Any], bool]] = None
                ) -> List[BaseModel]:
        """获取记录列表（按表的默认顺序排序）。

        Args:
            filters: 字段等值过滤条件，如 ``{"client_id": 1}``。
            predicate: 额外的过滤函数。

        Returns:
            记录副本列表。
        """
        records = list(self._table().values())
        if filters:
            records = [
                r for r in records
                if all(getattr(r, k) == v for k, v in filters.items())
            ]
        if predicate is not None:
            records = [r for r in records if predicate(r)]
        records.sort(key=self._sort_key, reverse=self._sort_descending)
        return [self._copy(r) for r in records]

    def count(self) -> int:
        return len(self._table())

    def update_by_id(self, record_id: Optional[int],
                     changes: Dict[str, Any]) -> Optional[BaseModel]:
        """局部更新记录（浅合并）。

        id 与 created_at 不会被修改，未提供的字段保持原值。
        输入先整体校验，校验失败时不做任何修改。

        Args:
            record_id: 记录 ID。
            changes: 要修改的字段（camelCase 或 snake_case）。

        Returns:
            更新后的记录（副本），记录不存在返回 None。

        Raises:
            InvalidInput: 校验失败。
        """
        changes = validate_update(self.entity, changes)
        existing = self._table().get(record_id) if record_id is not None else None
        if existing is None:
            logger.warning(f"{self.entity} 不存在: id={record_id}")
            return None

        changes.pop("id", None)
        changes.pop("created_at", None)
        self._before_update(existing, changes)

        updated = existing.model_copy(update=changes, deep=True)
        self._table()[record_id] = updated
        logger.info(f"已更新 {self.entity}: id={record_id}, 字段={sorted(changes)}")
        return self._copy(updated)

    def delete_by_id(self, record_id: Optional[int]) -> bool:
        """删除记录，返回是否真的删除了（重复删除返回 False）"""
        if record_id is None:
            return False
        removed = self._table().pop(record_id, None)
        if removed is None:
            return False
        logger.info(f"已删除 {self.entity}: id={record_id}")
        return True
