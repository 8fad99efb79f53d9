"""
令牌服务 - 校验访问令牌并解析用户身份
"""
from typing import Optional
from datetime import datetime, timedelta, timezone
from uuid import UUID
import jwt
import uuid

from core.exceptions import UnauthorizedException, TokenExpiredException
from core.logging_config import get_logger


logger = get_logger(__name__)


class TokenService:
    """
    访问令牌服务（HS256 JWT）

    - sub 字段为用户 UUID
    - 过期令牌抛出 TokenExpiredException
    - 其他无效令牌抛出 UnauthorizedException
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    def create_access_token(self, user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
        """创建访问令牌（供工具脚本与测试使用）"""
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self._expire_minutes))
        to_encode = {
            "sub": str(user_id),
            "iat": now,
            "exp": expire,
            "type": "access",
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    def verify_access_token(self, token: str) -> UUID:
        """校验访问令牌并返回用户ID"""
        if not token:
            raise UnauthorizedException("Couldn't find JWT")
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredException()
        except jwt.InvalidTokenError as e:
            logger.info("invalid_access_token", error=str(e))
            raise UnauthorizedException("Couldn't validate JWT")

        if payload.get("type", "access") != "access":
            raise UnauthorizedException("Couldn't validate JWT")

        try:
            return UUID(str(payload["sub"]))
        except ValueError:
            raise UnauthorizedException("Couldn't validate JWT")
