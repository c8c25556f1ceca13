"""存储层异常定义。

- InvalidInput: 输入数据校验失败，携带字段级错误列表（映射为 HTTP 400）
- DuplicateRecord: 违反唯一性约束（映射为 HTTP 409）

"记录不存在" 不是异常：仓库方法返回 None / False，由调用方转换为 404。
"""
from typing import Any, Dict, List, Optional


class StorageError(Exception):
    """存储层异常基类"""


class InvalidInput(StorageError):
    """输入校验失败。

    Attributes:
        entity: 实体名称（client / property / meeting / custom_field / user）。
        errors: 字段级错误列表，每项包含 field、message、type。
    """

    def __init__(self, entity: str, errors: List[Dict[str, Any]]) -> None:
        self.entity = entity
        self.errors = errors
        fields = ", ".join(e["field"] for e in errors) or "<root>"
        super().__init__(f"Invalid {entity} data: {fields}")


class DuplicateRecord(StorageError):
    """唯一键冲突（客户邮箱、用户名）。

    Attributes:
        entity: 实体名称。
        field: 冲突字段。
        value: 冲突值。
        existing_id: 已存在记录的 ID。
    """

    def __init__(self, entity: str, field: str, value: Any,
                 existing_id: Optional[int] = None) -> None:
        self.entity = entity
        self.field = field
        self.value = value
        self.existing_id = existing_id
        super().__init__(f"{entity} with {field}={value!r} already exists")
