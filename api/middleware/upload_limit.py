"""
上传大小限制中间件（纯 ASGI）

1. Content-Length 超限时在读取请求体之前直接返回 413
2. 分块传输或声明不实时，边接收边计数，超限即中断并返回 413
"""
from typing import Optional, Sequence, Tuple

from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.logging_config import get_logger
from core.response import error_response
from domain.common.exceptions import UploadTooLargeException

logger = get_logger(__name__)

# multipart 边界与表单头的余量
MULTIPART_OVERHEAD = 64 * 1024


class UploadSizeLimitMiddleware:
    """按路径后缀限制请求体大小，例如 ``[("/thumbnail", 10MB), ("/video", 1GB)]``。"""

    def __init__(self, app: ASGIApp, limits: Sequence[Tuple[str, int]], overhead: int = MULTIPART_OVERHEAD):
        self.app = app
        self.limits = [(suffix, max_bytes) for suffix, max_bytes in limits]
        self.overhead = overhead

    def _limit_for(self, scope: Scope) -> Optional[int]:
        if scope["method"] not in ("POST", "PUT", "PATCH"):
            return None
        path = scope["path"].rstrip("/")
        for suffix, max_bytes in self.limits:
            if path.endswith(suffix):
                return max_bytes
        return None

    async def _reject(self, scope: Scope, send: Send, max_bytes: int, size: Optional[int]) -> None:
        exc = UploadTooLargeException(max_bytes, size)
        request_id = scope.get("state", {}).get("request_id")
        body = error_response(
            code=exc.code,
            message=exc.message,
            error_type=exc.error_type,
            details=exc.details,
            request_id=request_id,
        )
        logger.warning("upload_rejected_too_large", path=scope["path"], max_bytes=max_bytes, size=size)
        response = JSONResponse(status_code=413, content=body.model_dump(mode="json"), headers={"Connection": "close"})
        await response(scope, _drain, send)

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        max_bytes = self._limit_for(scope)
        if max_bytes is None:
            await self.app(scope, receive, send)
            return

        ceiling = max_bytes + self.overhead
        headers = dict(scope.get("headers") or [])
        declared = headers.get(b"content-length")
        if declared is not None:
            try:
                declared_size = int(declared)
            except ValueError:
                declared_size = None
            if declared_size is not None and declared_size > ceiling:
                await self._reject(scope, send, max_bytes, declared_size)
                return

        received = 0
        exceeded = False
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > ceiling:
                    exceeded = True
                    raise UploadTooLargeException(max_bytes, received)
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            # 超限后替换下游（通常为解析失败）的响应
            if exceeded:
                if message["type"] == "http.response.start" and not response_started:
                    response_started = True
                    await self._reject(scope, send, max_bytes, received)
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except UploadTooLargeException:
            if not response_started:
                response_started = True
                await self._reject(scope, send, max_bytes, received)


async def _drain() -> Message:
    return {"type": "http.disconnect"}
