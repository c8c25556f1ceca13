"""REST API - 把 HTTP 请求映射到存储层调用。

路由：
- /api/clients            客户 CRUD，/api/clients/{id}/properties|meetings 关联查询
- /api/properties         房源 CRUD
- /api/meetings           会议 CRUD（支持 ?startDate&endDate 时间范围过滤）
- /api/custom-fields      自定义字段定义 CRUD，按实体类型查询与取值校验
- /api/analytics          经营分析
- /api/portfolio          客户资产组合
- /health                 健康检查

状态码约定：
- 400 校验失败（附字段级错误列表），409 唯一键冲突
- 404 记录不存在（格式错误的 ID 视为不存在）
- 500 其它异常（不暴露异常细节）

所有处理函数都是 async 且不会在存储调用中挂起，因此单个存储操作
相对其它请求是原子的。

使用方式：
    ```python
    app = create_app(StorageManager())
    ```
"""
import re
from typing import Any, Dict, Iterable, List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from loguru import logger
from pydantic import BaseModel

from business.analytics import AnalyticsAggregator
from business.custom_fields import validate_values
from business.portfolio import client_portfolio, status_badge
from database import DuplicateRecord, InvalidInput, StorageManager
from database.base_crud import BaseCRUD
from database.schemas import parse_timestamp, validate_insert, validate_update


# 实体名称 -> (单数显示名, 复数显示名)
_NOUNS = {
    "client": ("Client", "clients"),
    "property": ("Property", "properties"),
    "meeting": ("Meeting", "meetings"),
    "custom_field": ("Custom field", "custom fields"),
}

_ID_PATTERN = re.compile(r"^[0-9]+$")


def parse_id(raw: str) -> Optional[int]:
    """解析路径中的数字 ID；格式错误返回 None（按"查不到"处理）"""
    raw = raw.strip()
    if not _ID_PATTERN.match(raw):
        return None
    return int(raw)


def dump(record: Optional[BaseModel]) -> Optional[Dict[str, Any]]:
    """记录 -> JSON 字典（camelCase，时间为 ISO-8601 字符串）"""
    if record is None:
        return None
    return record.model_dump(mode="json", by_alias=True)


def dump_all(records: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    return [dump(r) for r in records]


def dump_with_badge(record: BaseModel) -> Dict[str, Any]:
    """记录 -> JSON 字典，附带状态显示颜色 statusBadge"""
    return {**dump(record), "statusBadge": status_badge(record.status)}


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, **extra})


def invalid_response(exc: InvalidInput) -> JSONResponse:
    noun = _NOUNS.get(exc.entity, (exc.entity, exc.entity))[0].lower()
    return error_response(400, f"Invalid {noun} data", errors=exc.errors)


def duplicate_response(exc: DuplicateRecord) -> JSONResponse:
    noun = _NOUNS.get(exc.entity, (exc.entity.capitalize(), ""))[0]
    return error_response(
        409, f"{noun} with this {exc.field} already exists",
        errors=[{"field": exc.field, "message": "already exists", "type": "duplicate"}],
    )


async def read_json(request: Request, entity: str) -> Any:
    """读取 JSON 请求体，格式错误时抛出 InvalidInput"""
    try:
        return await request.json()
    except ValueError:
        raise InvalidInput(entity, [{
            "field": "body",
            "message": "Malformed JSON body",
            "type": "json_invalid",
        }])


def _register_crud_routes(app: FastAPI, path: str, repo: BaseCRUD,
                          entity: str, with_list: bool = True,
                          with_get: bool = True) -> None:
    """为一个实体注册 列表 / 详情 / 创建 / 更新 / 删除 路由"""
    singular, plural = _NOUNS[entity]

    if with_list:
        @app.get(path, name=f"list_{entity}")
        async def list_records():
            try:
                return dump_all(repo.get_all())
            except Exception:
                logger.exception(f"获取 {plural} 列表出错")
                return error_response(500, f"Failed to fetch {plural}")

    if with_get:
        @app.get(f"{path}/{{record_id}}", name=f"get_{entity}")
        async def get_record(record_id: str):
            try:
                record = repo.get_by_id(parse_id(record_id))
                if record is None:
                    return error_response(404, f"{singular} not found")
                return dump(record)
            except Exception:
                logger.exception(f"获取 {entity} 出错: id={record_id}")
                return error_response(500, f"Failed to fetch {singular.lower()}")

    @app.post(path, status_code=201, name=f"create_{entity}")
    async def create_record(request: Request):
        try:
            payload = validate_insert(entity, await read_json(request, entity))
            record = repo.create(payload)
            return JSONResponse(status_code=201, content=dump(record))
        except InvalidInput as e:
            return invalid_response(e)
        except DuplicateRecord as e:
            return duplicate_response(e)
        except Exception:
            logger.exception(f"创建 {entity} 出错")
            return error_response(500, f"Failed to create {singular.lower()}")

    @app.put(f"{path}/{{record_id}}", name=f"update_{entity}")
    async def update_record(record_id: str, request: Request):
        try:
            changes = validate_update(entity, await read_json(request, entity))
            record = repo.update_by_id(parse_id(record_id), changes)
            if record is None:
                return error_response(404, f"{singular} not found")
            return dump(record)
        except InvalidInput as e:
            return invalid_response(e)
        except DuplicateRecord as e:
            return duplicate_response(e)
        except Exception:
            logger.exception(f"更新 {entity} 出错: id={record_id}")
            return error_response(500, f"Failed to update {singular.lower()}")

    @app.delete(f"{path}/{{record_id}}", status_code=204, name=f"delete_{entity}")
    async def delete_record(record_id: str):
        try:
            if not repo.delete_by_id(parse_id(record_id)):
                return error_response(404, f"{singular} not found")
            return Response(status_code=204)
        except Exception:
            logger.exception(f"删除 {entity} 出错: id={record_id}")
            return error_response(500, f"Failed to delete {singular.lower()}")


def create_app(db: StorageManager,
               cors_origins: Optional[List[str]] = None) -> FastAPI:
    """创建 FastAPI 应用。

    Args:
        db: 存储管理器，由调用方创建并负责关闭。
        cors_origins: 允许的跨域来源，为空则不启用 CORS。

    Returns:
        配置好路由的 FastAPI 应用。
    """
    app = FastAPI(
        title="Real Estate CRM",
        description="客户、房源、会议与自定义字段管理",
        version="1.0.0",
    )
    app.state.db = db

    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # ==================== 客户 ====================

    _register_crud_routes(app, "/api/clients", db.clients, "client")

    @app.get("/api/clients/{client_id}/properties")
    async def client_properties(client_id: str):
        """客户名下的房源"""
        try:
            return dump_all(db.properties.get_by_client(parse_id(client_id)))
        except Exception:
            logger.exception(f"获取客户房源出错: client_id={client_id}")
            return error_response(500, "Failed to fetch client properties")

    @app.get("/api/clients/{client_id}/meetings")
    async def client_meetings(client_id: str):
        """客户的会议"""
        try:
            return dump_all(db.meetings.get_by_client(parse_id(client_id)))
        except Exception:
            logger.exception(f"获取客户会议出错: client_id={client_id}")
            return error_response(500, "Failed to fetch client meetings")

    # ==================== 房源 ====================

    _register_crud_routes(app, "/api/properties", db.properties, "property")

    # ==================== 会议 ====================

    @app.get("/api/meetings")
    async def list_meetings(
        start_date: Optional[str] = Query(None, alias="startDate"),
        end_date: Optional[str] = Query(None, alias="endDate"),
    ):
        """会议列表（按预约时间正序）；同时提供起止时间时按闭区间过滤"""
        try:
            if start_date and end_date:
                start, end = parse_timestamp(start_date), parse_timestamp(end_date)
                if start is None or end is None:
                    logger.warning(f"无法解析的时间范围: {start_date} ~ {end_date}")
                    return []
                return dump_all(db.meetings.get_by_date_range(start, end))
            return dump_all(db.meetings.get_all())
        except Exception:
            logger.exception("获取会议列表出错")
            return error_response(500, "Failed to fetch meetings")

    _register_crud_routes(app, "/api/meetings", db.meetings, "meeting", with_list=False)

    # ==================== 经营分析 ====================

    @app.get("/api/analytics")
    async def analytics():
        """经营分析（每次实时计算）"""
        try:
            return AnalyticsAggregator(db).compute().to_dict()
        except Exception:
            logger.exception("计算经营分析出错")
            return error_response(500, "Failed to fetch analytics")

    # ==================== 资产组合 ====================

    @app.get("/api/portfolio")
    async def portfolio(search: Optional[str] = None):
        """名下有房源的客户及其房源（客户与房源附带 statusBadge）"""
        try:
            return [
                {
                    "client": dump_with_badge(row["client"]),
                    "properties": [dump_with_badge(p) for p in row["properties"]],
                    "propertyCount": row["propertyCount"],
                    "totalValue": row["totalValue"],
                }
                for row in client_portfolio(db, search)
            ]
        except Exception:
            logger.exception("获取资产组合出错")
            return error_response(500, "Failed to fetch portfolio")

    # ==================== 自定义字段 ====================

    @app.get("/api/custom-fields/{entity_type}")
    async def list_custom_fields(entity_type: str):
        """某类实体的自定义字段定义"""
        try:
            return dump_all(db.custom_fields.get_by_entity_type(entity_type))
        except Exception:
            logger.exception(f"获取自定义字段出错: entity_type={entity_type}")
            return error_response(500, "Failed to fetch custom fields")

    @app.post("/api/custom-fields/{entity_type}/validate")
    async def validate_custom_values(entity_type: str, request: Request):
        """按某类实体的自定义字段定义校验一组取值"""
        try:
            values = await read_json(request, "custom_field")
            if not isinstance(values, dict):
                raise InvalidInput("custom_field", [{
                    "field": "body",
                    "message": "Expected an object of field values",
                    "type": "dict_type",
                }])
            fields = db.custom_fields.get_by_entity_type(entity_type)
            errors = validate_values(fields, values)
            return {"valid": not errors, "errors": errors}
        except InvalidInput as e:
            return invalid_response(e)
        except Exception:
            logger.exception(f"校验自定义字段出错: entity_type={entity_type}")
            return error_response(500, "Failed to validate custom fields")

    _register_crud_routes(
        app, "/api/custom-fields", db.custom_fields, "custom_field",
        with_list=False, with_get=False,
    )

    # ==================== 健康检查 ====================

    @app.get("/health")
    async def health_check():
        """健康检查"""
        return {"status": "ok", "counts": db.get_counts()}

    return app
