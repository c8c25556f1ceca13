"""存储层：实体模型、校验、内存仓库与统一门面"""
from .exceptions import DuplicateRecord, InvalidInput, StorageError
from .manager import StorageManager

__all__ = ["StorageManager", "StorageError", "InvalidInput", "DuplicateRecord"]
