"""存储管理器 - 统一门面（Facade）。

StorageManager 是 database 模块的统一入口，组合了所有子仓库：

    db.clients / db.properties / db.meetings / db.custom_fields / db.users

实例在进程启动时显式创建，并注入到 Web 应用中（见 interface.web.api），
进程停止时调用 close() 释放。不存在模块级的全局存储实例。
"""
from typing import Dict, Optional

from config.settings import settings

from .entity_repos import (
    ClientRepository, PropertyRepository, MeetingRepository,
    CustomFieldRepository, UserRepository,
)
from .store import MemoryStore


class StorageManager:
    """存储管理器 - 统一门面。

    Attributes:
        store: 内存存储。
        clients: 客户仓库。
        properties: 房源仓库。
        meetings: 会议仓库。
        custom_fields: 自定义字段仓库。
        users: 用户仓库。
        enforce_unique_keys: 是否校验客户邮箱 / 用户名唯一。

    Example::

        db = StorageManager()
        client = db.clients.create({"name": "Ali", "email": "ali@example.com"})
        db.properties.get_by_client(client.id)
    """

    def __init__(self, enforce_unique_keys: Optional[bool] = None) -> None:
        """初始化存储管理器。

        Args:
            enforce_unique_keys: 唯一性校验开关，为 None 时使用 settings 配置。
        """
        if enforce_unique_keys is None:
            enforce_unique_keys = settings.enforce_unique_keys
        self.enforce_unique_keys = enforce_unique_keys

        self.store = MemoryStore()

        self.clients = ClientRepository(self.store, enforce_unique=enforce_unique_keys)
        self.properties = PropertyRepository(self.store)
        self.meetings = MeetingRepository(self.store)
        self.custom_fields = CustomFieldRepository(self.store)
        self.users = UserRepository(self.store, enforce_unique=enforce_unique_keys)

    # ================================================================
    # 基础设施方法
    # ================================================================

    def reset(self) -> None:
        """清空所有数据并重置 ID 计数器"""
        self.store.reset()

    def close(self) -> None:
        """关闭存储，释放所有资源"""
        self.store.close()

    @property
    def is_closed(self) -> bool:
        return self.store.is_closed

    # ================================================================
    # 便捷查询方法
    # ================================================================

    def get_counts(self) -> Dict[str, int]:
        """各表记录数"""
        return {
            "clients": self.clients.count(),
            "properties": self.properties.count(),
            "meetings": self.meetings.count(),
            "custom_fields": self.custom_fields.count(),
            "users": self.users.count(),
        }

