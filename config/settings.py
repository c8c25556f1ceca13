"""全局配置管理

所有用户可配置项均通过 .env 文件设置，运行时自动加载到此处。

使用方式：
    1. 运行 python scripts/setup_env.py 生成 .env 文件
    2. 或手动创建 .env 文件 / 设置环境变量（如 WEB_PORT=8080）
"""
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用配置 - 所有字段均可通过 .env 或环境变量覆盖"""

    # ========== Web 服务 ==========
    web_host: str = "0.0.0.0"
    web_port: int = 5000
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # ========== 日志 ==========
    log_level: str = "INFO"

    # ========== 存储 ==========
    # 客户邮箱 / 用户名唯一性校验；关闭后允许重复
    enforce_unique_keys: bool = True
    # 启动时是否写入演示数据
    seed_demo_data: bool = False

    # ========== 分析 ==========
    upcoming_meetings_limit: int = 5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def cors_origin_list(self) -> List[str]:
        """逗号分隔的 CORS 来源列表"""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# 全局配置实例
settings = Settings()
