"""
FastAPI应用主入口
"""
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager

from api.routes import videos as video_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware, UploadSizeLimitMiddleware
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger, configure_logging
from infrastructure.database import create_tables
from infrastructure.external.storage import (
    init_storage_client,
    shutdown_storage_client,
    get_storage_client,
    get_storage_config,
)


# 初始化日志：在入口处显式配置，避免模块导入时的副作用
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时创建数据库表（仅开发环境）
    if settings.DEBUG:
        await create_tables()
        logger.info("database_initialized", message="Database tables created (development)")

    # 初始化存储服务（缩略图：本地 assets；视频：按配置选择 provider）
    await init_storage_client(settings)
    config = get_storage_config(settings)
    storage = get_storage_client()
    if storage and await storage.health_check():
        logger.info("storage_health_check_passed", provider=config.type, bucket=config.bucket)

    yield

    # 关闭存储服务
    await shutdown_storage_client()
    logger.info("application_shutdown", message="Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="视频缩略图与视频上传、处理与访问URL签发服务",
    redoc_url="/redoc",
)

# 添加中间件（注意顺序：后添加的先执行）
# 1. 上传大小限制（最内层，拿到 request_id 后再判断）
app.add_middleware(
    UploadSizeLimitMiddleware,
    limits=[
        ("/thumbnail", settings.media.thumbnail_max_bytes),
        ("/video", settings.media.video_max_bytes),
    ],
)

# 2. 日志中间件（依赖request_id）
app.add_middleware(LoggingMiddleware)

# 3. Request ID中间件（为后续中间件提供request_id）
app.add_middleware(RequestIDMiddleware)

# 4. CORS中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册全局异常处理器
register_exception_handlers(app)


# 注册路由
app.include_router(video_routes.router, prefix="/api/v1")

# 本地静态资源（缩略图、本地存储模式下的视频）
_assets_root = Path(settings.media.assets_root)
_assets_root.mkdir(parents=True, exist_ok=True)
app.mount("/assets", StaticFiles(directory=str(_assets_root)), name="assets")


# 根路径
@app.get("/", tags=["Root"])
async def root():
    """API根路径"""
    return success_response(
        data={
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/docs",
            "redoc": "/redoc"
        },
        message="Welcome"
    )


# 健康检查
@app.get("/health", tags=["Health"])
async def health_check():
    """健康检查端点"""
    return success_response(data={"status": "healthy"}, message="OK")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
