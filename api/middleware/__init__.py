
from .request_id import RequestIDMiddleware, get_request_id, get_client_ip, bind_user_id
from .logging import LoggingMiddleware
from .upload_limit import UploadSizeLimitMiddleware

__all__ = [
    "RequestIDMiddleware",
    "LoggingMiddleware",
    "UploadSizeLimitMiddleware",
    "get_request_id",
    "get_client_ip",
    "bind_user_id",
]
