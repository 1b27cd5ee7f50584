"""TokenService -- 会话凭证签发与校验

凭证为 HS256 JWT，payload 含 userId / email / exp，
通过 HttpOnly cookie 传递，HTTP 请求与实时连接握手共用同一凭证。
"""

from datetime import timedelta

import jwt
from taskhub.core.errors import UnauthorizedError
from taskhub.core.models import AuthPayload, UserPublic, utc_now

_ALGORITHM = "HS256"


class TokenService:
    """会话凭证编解码"""

    def __init__(self, secret_key: str, ttl_s: int) -> None:
        self._secret_key = secret_key
        self._ttl_s = ttl_s

    @property
    def ttl_s(self) -> int:
        return self._ttl_s

    def issue(self, user: UserPublic) -> str:
        now = utc_now()
        payload = {
            "userId": user.id,
            "email": user.email,
            "iat": now,
            "exp": now + timedelta(seconds=self._ttl_s),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str | None) -> AuthPayload:
        """校验凭证

        Raises:
            UnauthorizedError: 凭证缺失、签名错误、过期或缺少字段
        """
        if not token:
            raise UnauthorizedError("Authentication required")
        try:
            decoded = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
            return AuthPayload(user_id=decoded["userId"], email=decoded["email"])
        except (jwt.PyJWTError, KeyError) as e:
            raise UnauthorizedError("Invalid or expired token") from e
