"""用户接口模块 - REST API 与 Web 服务通道

核心组件：
- create_app: 创建 FastAPI 应用（注入 StorageManager）
- WebChannel: 在后台线程运行 uvicorn，负责启动与停止

架构设计：
    HTTP 请求 ──→ 路由 ──→ 校验 ──→ StorageManager ──→ JSON 响应

使用示例：
    ```python
    from database import StorageManager
    from interface import WebChannel

    db = StorageManager()
    web = WebChannel(db, port=5000)
    await web.startup()
    ```
"""
from interface.web.api import create_app
from interface.web.channel import WebChannel

__all__ = ["create_app", "WebChannel"]
