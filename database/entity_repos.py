"""实体仓库 - 客户、房源、会议、自定义字段、用户的数据访问层。

每个仓库继承 BaseCRUD 获得通用能力，并添加领域特定的查询方法：
- 客户、房源：按创建时间倒序（最新的在前），便于记录管理
- 会议：按预约时间正序（最近的在前），便于日程安排
- 自定义字段、用户：按创建顺序

房源与会议通过 client_id 非拥有地引用客户；删除客户不会级联，
悬空引用在读取时再解析（见 business.portfolio）。
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from .base_crud import BaseCRUD
from .exceptions import DuplicateRecord, InvalidInput
from .models import (
    Client, Property, Meeting, CustomField, User,
    EntityType, MeetingStatus, as_utc, check_select_options,
)
from .store import MemoryStore


class ClientRepository(BaseCRUD):
    """客户仓库。

    邮箱默认要求唯一（忽略大小写）；``enforce_unique=False`` 时允许重复。
    """

    table_name = "clients"
    entity = "client"
    model = Client
    _sort_descending = True

    def __init__(self, store: MemoryStore, enforce_unique: bool = True) -> None:
        super().__init__(store)
        self.enforce_unique = enforce_unique

    def _sort_key(self, record: Client):
        return (record.created_at, record.id)

    def find_by_email(self, email: str) -> Optional[Client]:
        """按邮箱查找客户（忽略大小写），不存在返回 None"""
        target = email.casefold()
        for client in self._table().values():
            if client.email.casefold() == target:
                return self._copy(client)
        return None

    def _check_email(self, email: str, exclude_id: Optional[int] = None) -> None:
        if not self.enforce_unique:
            return
        existing = self.find_by_email(email)
        if existing is not None and existing.id != exclude_id:
            logger.warning(f"客户邮箱重复: {email} (已存在 id={existing.id})")
            raise DuplicateRecord(self.entity, "email", email, existing.id)

    def _before_create(self, data: Dict[str, Any]) -> None:
        self._check_email(data["email"])

    def _before_update(self, existing: Client, changes: Dict[str, Any]) -> None:
        if "email" in changes:
            self._check_email(changes["email"], exclude_id=existing.id)

    def search(self, keyword: str) -> List[Client]:
        """按姓名、邮箱或公司搜索客户（忽略大小写）。

        Args:
            keyword: 搜索关键词，空字符串匹配所有客户。

        Returns:
            匹配的客户列表（最新的在前）。
        """
        needle = keyword.strip().casefold()
        if not needle:
            return self.get_all()

        def _match(client: Client) -> bool:
            fields = (client.name, client.email, client.company or "")
            return any(needle in f.casefold() for f in fields)

        return self.get_all(predicate=_match)


class PropertyRepository(BaseCRUD):
    """房源仓库。"""

    table_name = "properties"
    entity = "property"
    model = Property
    _sort_descending = True

    def _sort_key(self, record: Property):
        return (record.created_at, record.id)

    def get_by_client(self, client_id: Optional[int]) -> List[Property]:
        """获取某客户名下的全部房源"""
        if client_id is None:
            return []
        return self.get_all(filters={"client_id": client_id})


class MeetingRepository(BaseCRUD):
    """会议仓库。"""

    table_name = "meetings"
    entity = "meeting"
    model = Meeting

    def _sort_key(self, record: Meeting):
        return (record.scheduled_at, record.id)

    def get_by_client(self, client_id: Optional[int]) -> List[Meeting]:
        """获取某客户的全部会议"""
        if client_id is None:
            return []
        return self.get_all(filters={"client_id": client_id})

    def get_by_date_range(self, start: datetime, end: datetime) -> List[Meeting]:
        """获取预约时间在 [start, end] 闭区间内的会议。

        Args:
            start: 起始时间（含）。无时区时按 UTC 处理。
            end: 结束时间（含）。

        Returns:
            会议列表（按预约时间正序）。
        """
        start, end = as_utc(start), as_utc(end)
        return self.get_all(
            predicate=lambda m: start <= m.scheduled_at <= end
        )

    def get_upcoming(self, now: datetime, limit: Optional[int] = None) -> List[Meeting]:
        """获取尚未开始且状态为 scheduled 的会议（最近的在前）。

        Args:
            now: 当前时间，预约时间须严格晚于它。
            limit: 最多返回条数，None 表示不限。
        """
        now = as_utc(now)
        meetings = self.get_all(
            predicate=lambda m: (
                m.scheduled_at > now and m.status == MeetingStatus.SCHEDULED
            )
        )
        return meetings if limit is None else meetings[:limit]


class CustomFieldRepository(BaseCRUD):
    """自定义字段定义仓库。"""

    table_name = "custom_fields"
    entity = "custom_field"
    model = CustomField

    def get_by_entity_type(self, entity_type: Union[EntityType, str]) -> List[CustomField]:
        """获取某类实体的自定义字段定义；未知类型返回空列表"""
        try:
            entity_type = EntityType(entity_type)
        except ValueError:
            return []
        return self.get_all(filters={"entity_type": entity_type})

    def _before_update(self, existing: CustomField, changes: Dict[str, Any]) -> None:
        # 合并后再检查 type 与 options 是否一致
        kind = changes.get("type", existing.type)
        options = changes["options"] if "options" in changes else existing.options
        try:
            check_select_options(kind, options)
        except ValueError as e:
            raise InvalidInput(self.entity, [{
                "field": "options",
                "message": str(e),
                "type": "value_error",
            }])


class UserRepository(BaseCRUD):
    """用户仓库。

    用户名默认要求唯一；目前没有接口使用用户数据。
    """

    table_name = "users"
    entity = "user"
    model = User

    def __init__(self, store: MemoryStore, enforce_unique: bool = True) -> None:
        super().__init__(store)
        self.enforce_unique = enforce_unique

    def get_by_username(self, username: str) -> Optional[User]:
        """按用户名查找用户，不存在返回 None"""
        for user in self._table().values():
            if user.username == username:
                return self._copy(user)
        return None

    def _before_create(self, data: Dict[str, Any]) -> None:
        if not self.enforce_unique:
            return
        existing = self.get_by_username(data["username"])
        if existing is not None:
            logger.warning(f"用户名重复: {data['username']}")
            raise DuplicateRecord(self.entity, "username", data["username"], existing.id)

    def _before_update(self, existing: User, changes: Dict[str, Any]) -> None:
        if not self.enforce_unique or "username" not in changes:
            return
        other = self.get_by_username(changes["username"])
        if other is not None and other.id != existing.id:
            raise DuplicateRecord(self.entity, "username", changes["username"], other.id)
