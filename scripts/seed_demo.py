"""写入演示数据

使用方式：
    python app.py --seed

也可在代码中对任意 StorageManager 调用 seed_demo_data(db)。
"""
import sys
import os
from datetime import timedelta

# 添加项目根目录到路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from loguru import logger

from business.portfolio import meeting_client_name, property_owner_name
from database import StorageManager
from database.models import utcnow


DEMO_CLIENTS = [
    {
        "name": "Ahmed Al Mansouri",
        "email": "ahmed@example.com",
        "phone": "+971 50 123 4567",
        "nationality": "UAE",
        "visaStatus": "not_required",
        "source": "referral",
        "clientType": "buyer",
        "company": "Mansouri Holdings",
    },
    {
        "name": "Sarah Collins",
        "email": "sarah.collins@example.com",
        "phone": "+44 20 7946 0018",
        "nationality": "UK",
        "visaStatus": "valid",
        "source": "website",
        "clientType": "investor",
        "status": "prospect",
    },
]

DEMO_PROPERTIES = [
    # (客户下标, 房源数据)；客户下标为 None 表示未分配
    (0, {
        "title": "Palm Jumeirah Villa",
        "address": "Frond N, Palm Jumeirah, Dubai",
        "price": "12500000.00",
        "bedrooms": 5,
        "bathrooms": 6,
        "propertyType": "residential",
    }),
    (1, {
        "title": "Business Bay Office",
        "address": "Bay Square, Business Bay, Dubai",
        "price": "3200000",
        "propertyType": "commercial",
        "status": "pending",
    }),
    (None, {
        "title": "Jebel Ali Warehouse",
        "address": "Jebel Ali Free Zone, Dubai",
        "price": "8750000.50",
        "propertyType": "industrial",
    }),
]

DEMO_CUSTOM_FIELDS = [
    {"name": "budget", "label": "Budget", "type": "number", "entityType": "client"},
    {
        "name": "preferred_area",
        "label": "Preferred Area",
        "type": "select",
        "options": ["Downtown", "Marina", "Palm Jumeirah"],
        "entityType": "client",
    },
    {"name": "handover_date", "label": "Handover Date", "type": "date", "entityType": "property"},
]


def seed_demo_data(db: StorageManager) -> dict:
    """写入演示客户、房源、会议与自定义字段

    Returns:
        各表写入后的记录数
    """
    logger.info("正在写入演示数据...")

    clients = []
    for data in DEMO_CLIENTS:
        client = db.clients.create(data)
        clients.append(client)
        logger.info(f"已创建演示客户: {client.name}")

    for index, data in DEMO_PROPERTIES:
        payload = dict(data)
        if index is not None:
            payload["clientId"] = clients[index].id
        prop = db.properties.create(payload)
        logger.info(f"已创建演示房源: {prop.title}（客户: {property_owner_name(db, prop)}）")

    now = utcnow()
    meetings = [
        {
            "title": "Villa viewing",
            "clientId": clients[0].id,
            "scheduledAt": now + timedelta(days=1),
            "location": "Palm Jumeirah",
        },
        {
            "title": "Lease terms",
            "scheduledAt": now + timedelta(days=3),
            "type": "contract_discussion",
            "externalClientName": "Omar Haddad",
            "externalClientEmail": "omar@example.com",
        },
    ]
    for data in meetings:
        meeting = db.meetings.create(data)
        logger.info(f"已创建演示会议: {meeting.title}（客户: {meeting_client_name(db, meeting)}）")

    for data in DEMO_CUSTOM_FIELDS:
        db.custom_fields.create(data)

    counts = db.get_counts()
    logger.info(f"演示数据写入完成: {counts}")
    return counts


if __name__ == "__main__":
    seed_demo_data(StorageManager())
