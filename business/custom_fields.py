"""自定义字段取值校验。

自定义字段定义（CustomField）按 type 解析为带标签的变体：
text / number / date / select(options) / boolean / file(引用)，
每种变体各自校验取值。

存储层不会自动调用这里的校验，客户等实体的 custom_fields 仍原样保存；
由表单或调用方决定何时使用（见 POST /api/custom-fields/{entityType}/validate）。
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from database.models import CustomField, FieldKind


@dataclass(frozen=True)
class TextField:
    name: str
    label: str
    required: bool = False
    kind: FieldKind = FieldKind.TEXT


@dataclass(frozen=True)
class NumberField:
    name: str
    label: str
    required: bool = False
    kind: FieldKind = FieldKind.NUMBER


@dataclass(frozen=True)
class DateField:
    name: str
    label: str
    required: bool = False
    kind: FieldKind = FieldKind.DATE


@dataclass(frozen=True)
class SelectField:
    name: str
    label: str
    options: Tuple[str, ...] = ()
    required: bool = False
    kind: FieldKind = FieldKind.SELECT


@dataclass(frozen=True)
class BooleanField:
    name: str
    label: str
    required: bool = False
    kind: FieldKind = FieldKind.BOOLEAN


@dataclass(frozen=True)
class FileField:
    """文件引用：URL 或内联编码数据（字符串），服务端不保存文件本身"""
    name: str
    label: str
    required: bool = False
    kind: FieldKind = FieldKind.FILE


FieldSpec = Union[TextField, NumberField, DateField, SelectField, BooleanField, FileField]


def to_spec(field: CustomField) -> FieldSpec:
    """把自定义字段定义解析为对应的变体"""
    common = {"name": field.name, "label": field.label, "required": field.required}
    if field.type == FieldKind.TEXT:
        return TextField(**common)
    if field.type == FieldKind.NUMBER:
        return NumberField(**common)
    if field.type == FieldKind.DATE:
        return DateField(**common)
    if field.type == FieldKind.SELECT:
        return SelectField(options=tuple(field.options or ()), **common)
    if field.type == FieldKind.BOOLEAN:
        return BooleanField(**common)
    if field.type == FieldKind.FILE:
        return FileField(**common)
    raise ValueError(f"未知字段类型: {field.type!r}")


_date_adapter = TypeAdapter(date)
_datetime_adapter = TypeAdapter(datetime)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_number(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "must be a number"
    if isinstance(value, (int, float)):
        return None
    if isinstance(value, str):
        try:
            float(value)
            return None
        except ValueError:
            pass
    return "must be a number"


def _check_date(value: Any) -> Optional[str]:
    if isinstance(value, (date, datetime)):
        return None
    if not isinstance(value, str):
        return "must be an ISO-8601 date"
    for adapter in (_date_adapter, _datetime_adapter):
        try:
            adapter.validate_python(value)
            return None
        except ValidationError:
            continue
    return "must be an ISO-8601 date"


def _check_boolean(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return None
    return "must be true or false"


def validate_value(field: Union[CustomField, FieldSpec], value: Any) -> Optional[str]:
    """校验单个取值。

    Args:
        field: 自定义字段定义或已解析的变体。
        value: 待校验的值；None / 空字符串视为未填写。

    Returns:
        错误信息，校验通过返回 None。
    """
    spec = to_spec(field) if isinstance(field, CustomField) else field
    if _is_blank(value):
        return "is required" if spec.required else None

    if isinstance(spec, TextField):
        return None if isinstance(value, str) else "must be text"
    if isinstance(spec, NumberField):
        return _check_number(value)
    if isinstance(spec, DateField):
        return _check_date(value)
    if isinstance(spec, SelectField):
        if value not in spec.options:
            return f"must be one of: {', '.join(spec.options)}"
        return None
    if isinstance(spec, BooleanField):
        return _check_boolean(value)
    if isinstance(spec, FileField):
        return None if isinstance(value, str) else "must be a file reference"
    raise ValueError(f"未知字段变体: {spec!r}")


def validate_values(fields: List[CustomField],
                    values: Dict[str, Any]) -> List[Dict[str, str]]:
    """按一组定义校验取值字典。

    未定义的键会被忽略；必填字段缺失会报错。

    Returns:
        错误列表，每项包含 field 与 message；全部通过返回空列表。
    """
    errors = []
    for field in fields:
        message = validate_value(field, values.get(field.name))
        if message:
            errors.append({"field": field.name, "message": f"{field.label} {message}"})
    return errors
