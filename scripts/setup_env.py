#!/usr/bin/env python3
"""交互式生成 .env 配置文件

使用方式：
    python scripts/setup_env.py

会引导用户填写配置项，生成 .env 文件；直接回车使用默认值。
"""
import os

# 项目根目录
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
ENV_FILE = os.path.join(PROJECT_ROOT, ".env")


# 配置项定义：(分组标题, env_key, 描述, 默认值)
CONFIG_ITEMS = [
    ("Web 服务", "WEB_HOST", "Web 监听地址", "0.0.0.0"),
    ("Web 服务", "WEB_PORT", "Web 监听端口", "5000"),
    ("Web 服务", "CORS_ORIGINS", "允许的跨域来源（逗号分隔）", "http://localhost:5173,http://localhost:3000"),
    ("日志", "LOG_LEVEL", "日志级别（DEBUG / INFO / WARNING）", "INFO"),
    ("存储", "ENFORCE_UNIQUE_KEYS", "是否校验客户邮箱 / 用户名唯一（true / false）", "true"),
    ("存储", "SEED_DEMO_DATA", "启动时写入演示数据（true / false）", "false"),
    ("分析", "UPCOMING_MEETINGS_LIMIT", "分析中展示的近期会议条数", "5"),
]


def build_env_lines(values: dict) -> list:
    """按分组生成 .env 文件内容"""
    env_lines = [
        "# 房地产 CRM 配置文件",
        "# 由 scripts/setup_env.py 自动生成",
    ]
    current_section = None
    for section, key, _desc, default in CONFIG_ITEMS:
        if section != current_section:
            current_section = section
            env_lines.append("")
            env_lines.append(f"# === {section} ===")
        env_lines.append(f"{key}={values.get(key, default)}")
    return env_lines


def main():
    print()
    print("=" * 60)
    print("  房地产 CRM 配置向导")
    print("  生成 .env 配置文件")
    print("=" * 60)
    print()

    # 检查是否已存在 .env
    if os.path.exists(ENV_FILE):
        print(f"⚠️  检测到已有 .env 文件: {ENV_FILE}")
        choice = input("是否覆盖？(y/N): ").strip().lower()
        if choice != "y":
            print("已取消。")
            return
        print()

    values = {}
    for _section, key, desc, default in CONFIG_ITEMS:
        print(f"📝 {desc}")
        value = input(f"  {key}= (默认: {default}): ").strip()
        values[key] = value or default
        print()

    with open(ENV_FILE, "w", encoding="utf-8") as f:
        f.write("\n".join(build_env_lines(values)) + "\n")

    print("=" * 60)
    print(f"  ✅ 配置文件已生成: {ENV_FILE}")
    print()
    print("  启动应用：")
    print("    python app.py")
    print("=" * 60)


if __name__ == "__main__":
    main()
