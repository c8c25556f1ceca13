"""实体校验入口。

- validate_insert: 按写入形态校验完整输入，返回规范化后的模型
- validate_update: 按写入形态的"全部可选"版本校验局部输入，返回实际提供的字段
- parse_timestamp: 解析查询参数中的时间

校验失败统一抛出 InvalidInput，并列出所有违规字段。
"""
import re
from datetime import date, datetime, time
from typing import Annotated, Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, TypeAdapter, ValidationError, create_model
from pydantic.fields import FieldInfo

from .exceptions import InvalidInput
from .models import (
    ClientInsert, PropertyInsert, MeetingInsert, CustomFieldInsert, UserInsert,
    as_utc,
)


# 实体名称 -> 写入形态
INSERT_SCHEMAS: Dict[str, Type[BaseModel]] = {
    "client": ClientInsert,
    "property": PropertyInsert,
    "meeting": MeetingInsert,
    "custom_field": CustomFieldInsert,
    "user": UserInsert,
}


def _optional_field(field: FieldInfo) -> tuple:
    """把字段改为可选（默认 None），保留长度/范围等约束"""
    annotation = field.annotation
    if field.metadata:
        annotation = Annotated[(annotation, *field.metadata)]
    return (Optional[annotation], None)


def _partial_schema(model: Type[BaseModel]) -> Type[BaseModel]:
    """生成写入形态的局部版本（所有字段可选），字段校验器随继承保留"""
    fields = {
        name: _optional_field(field)
        for name, field in model.model_fields.items()
    }
    return create_model(f"{model.__name__}Update", __base__=model, **fields)


UPDATE_SCHEMAS: Dict[str, Type[BaseModel]] = {
    entity: _partial_schema(model) for entity, model in INSERT_SCHEMAS.items()
}


def format_errors(exc: ValidationError) -> List[Dict[str, Any]]:
    """把 pydantic 的错误转换为字段级错误列表"""
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "body"
        errors.append({
            "field": field,
            "message": err["msg"],
            "type": err["type"],
        })
    return errors


def _schema_for(entity: str, registry: Dict[str, Type[BaseModel]]) -> Type[BaseModel]:
    try:
        return registry[entity]
    except KeyError:
        raise ValueError(f"未知实体类型: {entity}")


def validate_insert(entity: str, raw: Any) -> BaseModel:
    """校验完整的写入数据。

    Args:
        entity: 实体名称（client / property / meeting / custom_field / user）。
        raw: 原始输入（通常是请求体解析得到的字典）。

    Returns:
        规范化后的写入模型，缺省字段已填入默认值。

    Raises:
        InvalidInput: 缺少必填字段、类型错误、格式错误或枚举取值非法。
    """
    schema = _schema_for(entity, INSERT_SCHEMAS)
    try:
        return schema.model_validate(raw)
    except ValidationError as e:
        raise InvalidInput(entity, format_errors(e))


def validate_update(entity: str, raw: Any) -> Dict[str, Any]:
    """校验局部更新数据。

    所有字段均可选，只返回调用方实际提供的字段（snake_case 键）。
    显式传入 null 会清空可选字段；必填字段或带默认值的字段不允许为 null。

    Raises:
        InvalidInput: 同 validate_insert。
    """
    schema = _schema_for(entity, UPDATE_SCHEMAS)
    insert_fields = INSERT_SCHEMAS[entity].model_fields
    try:
        partial = schema.model_validate(raw, context={"partial": True})
    except ValidationError as e:
        raise InvalidInput(entity, format_errors(e))

    errors = []
    changes: Dict[str, Any] = {}
    for name in partial.model_fields_set:
        value = getattr(partial, name)
        field = insert_fields[name]
        if value is None and (field.is_required() or field.default is not None):
            errors.append({
                "field": field.alias or name,
                "message": "Field may not be null",
                "type": "null_not_allowed",
            })
            continue
        changes[name] = value
    if errors:
        raise InvalidInput(entity, errors)
    return changes


_datetime_adapter = TypeAdapter(datetime)
_date_adapter = TypeAdapter(date)

# 纯数字不按 Unix 时间戳解析
_NUMERIC_PATTERN = re.compile(r"^[+-]?\d+(\.\d*)?([eE][+-]?\d+)?$")


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """解析 ISO-8601 时间（或日期），返回 UTC 时间；无法解析时返回 None"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if _NUMERIC_PATTERN.match(value.strip()):
        return None
    try:
        return as_utc(_datetime_adapter.validate_python(value))
    except ValidationError:
        pass
    try:
        day = _date_adapter.validate_python(value)
    except ValidationError:
        return None
    return as_utc(datetime.combine(day, time.min))
