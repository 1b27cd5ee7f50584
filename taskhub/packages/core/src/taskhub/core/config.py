"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、会话凭证、实时推送、字段长度限制等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKHUB_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKHUB_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskhub.db"),
    )


# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("TASKHUB_SSE_HEARTBEAT_INTERVAL", "15")
)

# 每个实时连接的出站队列上限，溢出即断开该连接
HUB_QUEUE_MAXSIZE: int = int(os.environ.get("TASKHUB_HUB_QUEUE_MAXSIZE", "100"))

# 会话 cookie 名称
SESSION_COOKIE_NAME: str = "token"

# 字段长度限制
TITLE_MAX_LENGTH: int = 200
DESCRIPTION_MAX_LENGTH: int = 2000
NAME_MIN_LENGTH: int = 2

# ULID：26 位 Crockford base32
ID_PATTERN: str = r"^[0-9A-HJKMNP-TV-Z]{26}$"

# 日志输出：dev（可读）或 json（结构化）
LOG_FORMATS: tuple[str, ...] = ("dev", "json")


def get_log_format() -> str:
    """未知取值回退为 dev"""
    value = os.environ.get("TASKHUB_LOG_FORMAT", "dev").lower()
    return value if value in LOG_FORMATS else "dev"


def get_log_level() -> str:
    return os.environ.get("TASKHUB_LOG_LEVEL", "INFO").upper()
