"""GatewayConfig -- Gateway 运行配置加载

从环境变量加载配置，非法值记录告警后回退默认值，不阻塞启动。
"""

import os

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()

_DEV_SECRET = "taskhub-dev-secret-change-me"


class GatewayConfig(BaseModel):
    """Gateway 配置 -- 从环境变量加载

    环境变量:
        TASKHUB_SECRET_KEY: 会话凭证签名密钥
        TASKHUB_TOKEN_TTL_S: 凭证与 cookie 有效期（秒，默认 7 天）
        TASKHUB_COOKIE_SECURE: 是否启用 Secure + SameSite=None
        TASKHUB_CLIENT_ORIGIN: CORS 允许的前端来源
    """

    secret_key: SecretStr = Field(
        default=SecretStr(_DEV_SECRET),
        description="HS256 签名密钥",
    )
    token_ttl_s: int = Field(
        default=7 * 24 * 60 * 60,
        ge=60,
        description="会话凭证有效期（秒）",
    )
    cookie_secure: bool = Field(
        default=False,
        description="生产环境启用 Secure cookie（跨站需 SameSite=None）",
    )
    client_origin: str = Field(
        default="http://localhost:5173",
        description="CORS 允许来源",
    )

    @property
    def cookie_samesite(self) -> str:
        return "none" if self.cookie_secure else "lax"


def load_gateway_config() -> GatewayConfig:
    """从环境变量加载 Gateway 配置

    Returns:
        GatewayConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("TASKHUB_SECRET_KEY"):
        kwargs["secret_key"] = SecretStr(val)
    else:
        log.warning("secret_key_not_configured", fallback="dev secret")

    if val := os.environ.get("TASKHUB_TOKEN_TTL_S"):
        try:
            kwargs["token_ttl_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_token_ttl_config",
                env_var="TASKHUB_TOKEN_TTL_S",
                value=val,
            )

    if val := os.environ.get("TASKHUB_COOKIE_SECURE"):
        kwargs["cookie_secure"] = val.lower() in ("1", "true", "yes")

    if val := os.environ.get("TASKHUB_CLIENT_ORIGIN"):
        kwargs["client_origin"] = val

    return GatewayConfig(**kwargs)
