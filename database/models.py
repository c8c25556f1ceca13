"""实体模型定义（pydantic）。

本模块定义了所有实体的字段、默认值与枚举取值，包括：
- 客户（Client）、房源（Property）、会议（Meeting）
- 自定义字段定义（CustomField）
- 用户（User）

每种实体有两种形态：
- ``XxxInsert``：写入形态，不含服务端分配的 id 与 created_at
- ``Xxx``：持久化形态，继承写入形态并追加 id 与 created_at

对外（JSON）字段名使用 camelCase，同时接受 snake_case 输入。
"""
import json
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional

from pydantic import (
    BaseModel, ConfigDict, EmailStr, Field, ValidationInfo,
    field_validator, model_validator,
)
from pydantic.alias_generators import to_camel


# ============================================================
# 枚举
# ============================================================

class ClientStatus(str, Enum):
    """客户状态"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    PROSPECT = "prospect"


class VisaStatus(str, Enum):
    """签证状态"""
    VALID = "valid"
    EXPIRED = "expired"
    PENDING = "pending"
    NOT_REQUIRED = "not_required"


class ClientSource(str, Enum):
    """客户来源渠道"""
    REFERRAL = "referral"
    WEBSITE = "website"
    SOCIAL_MEDIA = "social_media"
    DIRECT = "direct"


class ClientType(str, Enum):
    """客户类型"""
    BUYER = "buyer"
    SELLER = "seller"
    INVESTOR = "investor"
    TENANT = "tenant"
    LANDLORD = "landlord"


class PropertyType(str, Enum):
    """房源类型"""
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"


class PropertyStatus(str, Enum):
    """房源状态"""
    LISTED = "listed"
    PENDING = "pending"
    SOLD = "sold"


class MeetingType(str, Enum):
    """会议类型"""
    PROPERTY_VIEWING = "property_viewing"
    CONTRACT_DISCUSSION = "contract_discussion"
    CONSULTATION = "consultation"


class MeetingStatus(str, Enum):
    """会议状态"""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FieldKind(str, Enum):
    """自定义字段的值类型"""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    BOOLEAN = "boolean"
    FILE = "file"


class EntityType(str, Enum):
    """自定义字段所扩展的实体类型"""
    CLIENT = "client"
    PROPERTY = "property"
    MEETING = "meeting"


# ============================================================
# 工具函数
# ============================================================

def utcnow() -> datetime:
    """当前 UTC 时间（带时区）"""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """统一为带时区的 UTC 时间；无时区的时间按 UTC 处理"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# price 列对应 DECIMAL(12, 2)
PRICE_MAX_INTEGER_DIGITS = 10
PRICE_SCALE = 2


def normalize_price(value) -> str:
    """把价格规范化为两位小数的字符串。

    Args:
        value: 字符串、整数或浮点数形式的价格。

    Returns:
        形如 ``"500000.00"`` 的字符串。

    Raises:
        ValueError: 不是合法的非负十进制数，或超出 DECIMAL(12, 2) 范围。
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        raise ValueError("price must be a decimal string")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError("price must be a decimal string")
    if not amount.is_finite():
        raise ValueError("price must be a finite number")
    if amount < 0:
        raise ValueError("price must not be negative")
    if amount != 0 and amount.adjusted() + 1 > PRICE_MAX_INTEGER_DIGITS:
        raise ValueError(f"price allows at most {PRICE_MAX_INTEGER_DIGITS} integer digits")
    quantized = amount.quantize(Decimal("0.01"))
    if quantized != amount:
        raise ValueError(f"price allows at most {PRICE_SCALE} decimal places")
    return f"{quantized.copy_abs():.2f}"


def check_select_options(kind: Optional[FieldKind],
                         options: Optional[List[str]]) -> None:
    """校验字段类型与选项是否一致：select 必须有选项，其它类型不允许有选项。"""
    if kind is None:
        return
    if kind == FieldKind.SELECT and not options:
        raise ValueError("select fields require at least one option")
    if kind != FieldKind.SELECT and options:
        raise ValueError("options are only allowed for select fields")


# ============================================================
# 基类
# ============================================================

class CamelModel(BaseModel):
    """camelCase 别名的模型基类"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ============================================================
# 客户
# ============================================================

class ClientInsert(CamelModel):
    """客户写入形态。

    Attributes:
        name: 客户姓名，必填。
        nationality: 国籍。
        phone: 电话。
        email: 邮箱，必填（默认要求唯一，见 ClientRepository）。
        passport_copy: 护照副本（URL 或内联编码数据）。
        emirates_id: 阿联酋身份证副本（URL 或内联编码数据）。
        visa_copy: 签证副本（URL 或内联编码数据）。
        visa_status: 签证状态。
        source: 来源渠道。
        client_type: 客户类型。
        notes: 备注。
        company: 公司。
        status: 客户状态，默认 active。
        custom_fields: 自定义字段值（序列化文本，原样保存）。
    """
    name: str = Field(min_length=1)
    nationality: Optional[str] = None
    phone: Optional[str] = None
    email: EmailStr
    passport_copy: Optional[str] = None
    emirates_id: Optional[str] = None
    visa_copy: Optional[str] = None
    visa_status: Optional[VisaStatus] = None
    source: Optional[ClientSource] = None
    client_type: Optional[ClientType] = None
    notes: Optional[str] = None
    company: Optional[str] = None
    status: ClientStatus = ClientStatus.ACTIVE
    custom_fields: Optional[str] = None


class Client(ClientInsert):
    """客户（持久化形态）"""
    id: int
    created_at: datetime


# ============================================================
# 房源
# ============================================================

class PropertyInsert(CamelModel):
    """房源写入形态。

    Attributes:
        title: 标题，必填。
        address: 地址，必填。
        price: 价格，字符串形式的 DECIMAL(12, 2)，必填。
        bedrooms: 卧室数量。
        bathrooms: 卫生间数量。
        property_type: 房源类型，必填。
        status: 房源状态，默认 listed。
        client_id: 关联客户 ID（非拥有引用，可悬空）。
        description: 描述。
        image_url: 图片地址。
    """
    title: str = Field(min_length=1)
    address: str = Field(min_length=1)
    price: str
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    property_type: PropertyType
    status: PropertyStatus = PropertyStatus.LISTED
    client_id: Optional[int] = None
    description: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, value):
        if value is None:
            return value
        return normalize_price(value)


class Property(PropertyInsert):
    """房源（持久化形态）"""
    id: int
    created_at: datetime


# ============================================================
# 会议
# ============================================================

class MeetingInsert(CamelModel):
    """会议写入形态。

    一次会议只对应一个客户身份：要么 client_id 指向内部客户，
    要么使用 external_client_* 描述外部客户。该约束由表单保证，存储层不校验。

    Attributes:
        title: 标题，必填。
        description: 描述。
        client_id: 内部客户 ID。
        property_id: 关联房源 ID。
        scheduled_at: 预约时间，必填。
        duration: 时长（分钟），默认 60。
        location: 地点。
        type: 会议类型，默认 property_viewing。
        status: 会议状态，默认 scheduled。
        external_client_name: 外部客户姓名。
        external_client_email: 外部客户邮箱。
        external_client_phone: 外部客户电话。
    """
    title: str = Field(min_length=1)
    description: Optional[str] = None
    client_id: Optional[int] = None
    property_id: Optional[int] = None
    scheduled_at: datetime
    duration: int = Field(default=60, gt=0)
    location: Optional[str] = None
    type: MeetingType = MeetingType.PROPERTY_VIEWING
    status: MeetingStatus = MeetingStatus.SCHEDULED
    external_client_name: Optional[str] = None
    external_client_email: Optional[str] = None
    external_client_phone: Optional[str] = None

    @field_validator("scheduled_at")
    @classmethod
    def scheduled_at_to_utc(cls, value):
        return as_utc(value)


class Meeting(MeetingInsert):
    """会议（持久化形态）"""
    id: int
    created_at: datetime


# ============================================================
# 自定义字段
# ============================================================

class CustomFieldInsert(CamelModel):
    """自定义字段定义的写入形态。

    自定义字段只是元数据，描述某类实体的附加属性；
    存储层不会据此校验或合并实体数据。

    Attributes:
        name: 字段键名，必填。
        label: 显示名称，必填。
        type: 值类型。
        options: 可选项列表，仅 select 类型使用（也接受 JSON 字符串），空列表按 None 保存。
        required: 是否必填，默认 False。
        entity_type: 所扩展的实体类型。
    """
    name: str = Field(min_length=1)
    label: str = Field(min_length=1)
    type: FieldKind
    options: Optional[List[str]] = None
    required: bool = False
    entity_type: EntityType

    @field_validator("options", mode="before")
    @classmethod
    def parse_options(cls, value):
        if isinstance(value, str):
            if not value.strip():
                return None
            try:
                return json.loads(value)
            except ValueError:
                raise ValueError("options must be a list or a JSON-encoded list")
        return value

    @field_validator("options")
    @classmethod
    def strip_options(cls, value):
        if value is None:
            return value
        cleaned = [o.strip() for o in value]
        if any(not o for o in cleaned):
            raise ValueError("options must not contain empty values")
        return cleaned or None

    @model_validator(mode="after")
    def check_options(self, info: ValidationInfo):
        # 局部更新时只在两个字段同时出现才校验，合并后的一致性由仓库负责
        partial = bool(info.context and info.context.get("partial"))
        if partial and not {"type", "options"} <= self.model_fields_set:
            return self
        check_select_options(self.type, self.options)
        return self


class CustomField(CustomFieldInsert):
    """自定义字段定义（持久化形态）"""
    id: int
    created_at: datetime


# ============================================================
# 用户
# ============================================================

class UserInsert(CamelModel):
    """用户写入形态。

    密码以明文保存（已知缺陷，目前没有任何接口使用用户数据）。
    """
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class User(UserInsert):
    """用户（持久化形态）"""
    id: int
