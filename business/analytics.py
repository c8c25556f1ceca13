"""经营分析 - 基于存储当前内容的只读派生视图。

每次调用都对客户、房源、会议做一次全量扫描，不缓存、不增量维护。
数据量小且只在内存中，这样足够。
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger

from config.settings import settings
from database import StorageManager
from database.models import (
    ClientStatus, Meeting, PropertyStatus, PropertyType, utcnow, as_utc,
)
from business.portfolio import meeting_client_name


@dataclass
class AnalyticsReport:
    """分析结果

    Attributes:
        total_clients: 客户总数
        total_properties: 房源总数
        active_listings: 在售（listed）房源数
        portfolio_value: 全部房源价格之和
        client_status_distribution: 按客户状态计数（覆盖全部状态）
        property_type_distribution: 按房源类型计数（覆盖全部类型）
        upcoming_meetings: 即将开始的会议（最近的在前）
        upcoming_client_names: 与 upcoming_meetings 一一对应的客户显示名称
    """
    total_clients: int
    total_properties: int
    active_listings: int
    portfolio_value: float
    client_status_distribution: Dict[str, int]
    property_type_distribution: Dict[str, int]
    upcoming_meetings: List[Meeting] = field(default_factory=list)
    upcoming_client_names: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """转换为 JSON 友好的字典（camelCase 键）"""
        return {
            "totalClients": self.total_clients,
            "totalProperties": self.total_properties,
            "portfolioValue": self.portfolio_value,
            "activeListings": self.active_listings,
            "clientStatusDistribution": dict(self.client_status_distribution),
            "propertyTypeDistribution": dict(self.property_type_distribution),
            "upcomingMeetings": [
                {**m.model_dump(mode="json", by_alias=True), "clientName": name}
                for m, name in zip(self.upcoming_meetings, self.upcoming_client_names)
            ],
        }


class AnalyticsAggregator:
    """分析汇总器

    使用方式：
        ```python
        report = AnalyticsAggregator(db).compute()
        report.portfolio_value
        ```
    """

    def __init__(self, db: StorageManager, upcoming_limit: Optional[int] = None):
        """
        Args:
            db: 存储管理器
            upcoming_limit: 即将开始会议的最大条数，默认取 settings 配置（5）
        """
        self.db = db
        self.upcoming_limit = (
            upcoming_limit if upcoming_limit is not None
            else settings.upcoming_meetings_limit
        )

    def compute(self, now: Optional[datetime] = None) -> AnalyticsReport:
        """计算分析结果

        Args:
            now: 判断"即将开始"所用的当前时间，默认取当前 UTC 时间

        Returns:
            AnalyticsReport
        """
        now = as_utc(now) if now is not None else utcnow()
        clients = self.db.clients.get_all()
        properties = self.db.properties.get_all()

        # 按列表顺序逐个累加
        portfolio_value = 0.0
        for p in properties:
            portfolio_value += float(p.price)

        client_status = {status.value: 0 for status in ClientStatus}
        for c in clients:
            client_status[c.status.value] += 1

        property_types = {ptype.value: 0 for ptype in PropertyType}
        for p in properties:
            property_types[p.property_type.value] += 1

        upcoming = self.db.meetings.get_upcoming(now, limit=self.upcoming_limit)

        report = AnalyticsReport(
            total_clients=len(clients),
            total_properties=len(properties),
            active_listings=sum(
                1 for p in properties if p.status == PropertyStatus.LISTED
            ),
            portfolio_value=portfolio_value,
            client_status_distribution=client_status,
            property_type_distribution=property_types,
            upcoming_meetings=upcoming,
            upcoming_client_names=[meeting_client_name(self.db, m) for m in upcoming],
        )
        logger.debug(
            f"分析完成: clients={report.total_clients}, "
            f"properties={report.total_properties}, upcoming={len(upcoming)}"
        )
        return report
