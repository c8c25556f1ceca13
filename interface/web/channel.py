"""Web 服务通道 - 在后台线程中运行 uvicorn

负责 REST API 服务器的启动与停止，路由定义见 interface.web.api。

使用方式：
    ```python
    channel = WebChannel(db, port=5000)
    await channel.startup()
    # 访问 http://localhost:5000/api/clients
    await channel.shutdown()
    ```
"""
import asyncio
import threading
from typing import List, Optional

from loguru import logger

from database import StorageManager
from interface.web.api import create_app


class WebChannel:
    """Web 服务通道

    uvicorn 在独立线程中运行自己的事件循环；该线程不是主线程，
    uvicorn 不会安装信号处理，退出信号由 app.py 统一处理。

    Attributes:
        db: 存储管理器（由调用方创建与关闭）
        host: 监听地址
        port: 监听端口（0 表示由系统分配）
        cors_origins: 允许的跨域来源
        shutdown_timeout: 停止时等待服务线程退出的秒数
        app: FastAPI 应用（startup 后可用）
    """

    def __init__(
        self,
        db: StorageManager,
        host: str = "0.0.0.0",
        port: int = 5000,
        cors_origins: Optional[List[str]] = None,
        log_level: str = "warning",
        shutdown_timeout: float = 5.0,
    ):
        self.db = db
        self.host = host
        self.port = port
        self.cors_origins = cors_origins or []
        self.log_level = log_level
        self.shutdown_timeout = shutdown_timeout
        self.app = None
        self._server = None
        self._thread: Optional[threading.Thread] = None

    def _create_app(self):
        return create_app(self.db, cors_origins=self.cors_origins)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    async def startup(self):
        """启动 Web 服务器（重复调用无效果）"""
        import uvicorn

        if self.is_running:
            return
        self.app = self._create_app()
        config = uvicorn.Config(
            self.app, host=self.host, port=self.port, log_level=self.log_level,
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run, name="web-channel", daemon=True,
        )
        self._thread.start()
        logger.info(f"Web 服务已启动: http://{self.host}:{self.port}")

    async def shutdown(self):
        """通知服务器退出并等待线程结束"""
        if self._server is None:
            return
        self._server.should_exit = True
        await asyncio.to_thread(self._thread.join, self.shutdown_timeout)
        if self._thread.is_alive():
            logger.warning(f"Web 服务未在 {self.shutdown_timeout} 秒内停止，将随主进程退出")
        else:
            logger.info("Web 服务已停止")
        self._server = None
        self._thread = None
