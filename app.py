#!/usr/bin/env python3
"""房地产 CRM - Web 服务入口

启动 REST API 服务，提供：
1. 客户 / 房源 / 会议 / 自定义字段的增删改查
2. 经营分析与客户资产组合

数据保存在内存中，进程退出即丢失。

使用方式：
    python app.py

    # 指定端口
    python app.py --port 8080

    # 启动时写入演示数据
    python app.py --seed

环境变量（在 .env 文件中配置，运行 python scripts/setup_env.py 生成）：
    WEB_HOST              监听地址（默认 0.0.0.0）
    WEB_PORT              Web 端口（默认 5000）
    CORS_ORIGINS          允许的跨域来源，逗号分隔
    LOG_LEVEL             日志级别（默认 INFO）
    ENFORCE_UNIQUE_KEYS   是否校验客户邮箱 / 用户名唯一（默认 true）
    SEED_DEMO_DATA        启动时写入演示数据（默认 false）
"""
import argparse
import asyncio
import signal
import sys

from loguru import logger


def setup_logging(level: str):
    """重新配置 loguru 输出级别"""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def build_parser(settings) -> argparse.ArgumentParser:
    """命令行参数，默认值取自 settings"""
    parser = argparse.ArgumentParser(description="房地产 CRM Web 服务")
    parser.add_argument("--host", default=settings.web_host,
                        help=f"监听地址 (默认: {settings.web_host})")
    parser.add_argument("--port", type=int, default=settings.web_port,
                        help=f"监听端口 (默认: {settings.web_port})")
    parser.add_argument("--seed", action="store_true", default=settings.seed_demo_data,
                        help="启动时写入演示数据")
    parser.add_argument("--log-level", default=settings.log_level,
                        help=f"日志级别 (默认: {settings.log_level})")
    return parser


async def serve(args, settings, stop: asyncio.Event):
    """启动服务并阻塞到 stop 被置位，退出前停止 Web 服务并关闭存储"""
    from database import StorageManager
    from interface.web.channel import WebChannel

    db = StorageManager()
    web = WebChannel(db, host=args.host, port=args.port,
                     cors_origins=settings.cors_origin_list)
    try:
        if args.seed:
            from scripts.seed_demo import seed_demo_data
            seed_demo_data(db)
        await web.startup()
        logger.info(f"API 地址: http://localhost:{args.port}/api，接口文档: /docs")
        await stop.wait()
    finally:
        await web.shutdown()
        db.close()


async def main(argv=None):
    from config.settings import settings

    args = build_parser(settings).parse_args(argv)
    setup_logging(args.log_level)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await serve(args, settings, stop)
    logger.info("服务已停止")


def run():
    """命令行入口"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
