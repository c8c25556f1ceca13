"""客户资产组合视图与显示辅助。

- client_portfolio: 名下有房源的客户及其房源、房源数、总价值
- property_owner_name / meeting_client_name: 解析非拥有引用的显示名称
- status_badge: 状态 -> 显示颜色

客户被删除后，房源 / 会议上的 client_id 可能悬空，这不是错误，
读取时解析为 "Unknown client" 等占位名称。
"""
from typing import Any, Dict, List, Optional, Union

from database import StorageManager
from database.models import (
    ClientStatus, Meeting, MeetingStatus, Property, PropertyStatus,
)


UNASSIGNED = "Unassigned"
UNKNOWN_PROPERTY_OWNER = "Unknown client"
UNKNOWN_MEETING_CLIENT = "Unknown Client"
EXTERNAL_CLIENT = "External Client"


def property_owner_name(db: StorageManager, prop: Property) -> str:
    """房源所属客户的显示名称"""
    if prop.client_id is None:
        return UNASSIGNED
    client = db.clients.get_by_id(prop.client_id)
    return client.name if client else UNKNOWN_PROPERTY_OWNER


def meeting_client_name(db: StorageManager, meeting: Meeting) -> str:
    """会议客户的显示名称：内部客户优先，否则使用外部客户姓名"""
    if meeting.client_id is None:
        return meeting.external_client_name or EXTERNAL_CLIENT
    client = db.clients.get_by_id(meeting.client_id)
    return client.name if client else UNKNOWN_MEETING_CLIENT


_BADGE_COLORS = {
    PropertyStatus.LISTED: "green",
    PropertyStatus.PENDING: "yellow",
    PropertyStatus.SOLD: "blue",
    MeetingStatus.SCHEDULED: "blue",
    MeetingStatus.COMPLETED: "green",
    MeetingStatus.CANCELLED: "red",
    ClientStatus.ACTIVE: "green",
    ClientStatus.PROSPECT: "yellow",
    ClientStatus.INACTIVE: "gray",
}


def status_badge(status: Union[PropertyStatus, MeetingStatus, ClientStatus]) -> str:
    """状态对应的显示颜色。

    Raises:
        ValueError: 不是已知的状态枚举。
    """
    try:
        return _BADGE_COLORS[status]
    except (KeyError, TypeError):
        raise ValueError(f"未知状态: {status!r}")


def client_portfolio(db: StorageManager,
                     search: Optional[str] = None) -> List[Dict[str, Any]]:
    """名下至少有一套房源的客户组合。

    Args:
        db: 存储管理器。
        search: 按姓名、邮箱或公司过滤（忽略大小写），为空则不过滤。

    Returns:
        列表（客户按最新创建在前），每项包含：
        client、properties、propertyCount、totalValue。
    """
    clients = db.clients.search(search or "")
    portfolio = []
    for client in clients:
        properties = db.properties.get_by_client(client.id)
        if not properties:
            continue
        portfolio.append({
            "client": client,
            "properties": properties,
            "propertyCount": len(properties),
            "totalValue": sum(float(p.price) for p in properties),
        })
    return portfolio
