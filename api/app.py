"""
FastAPI application for the quote browser.
Builds the API app around a QuoteManager and the snapshot scheduler.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse

from utils import api_logger, config_manager, resolve_path, __version__
from quote_manager import QuoteManager
from scheduler import ScheduledTasks, TaskScheduler

from .routes import router
from .middleware import setup_middleware
from .models import HealthResponse


def create_app(manager: Optional[QuoteManager] = None,
               scheduler_enabled: Optional[bool] = None) -> FastAPI:
    """创建应用；manager 与调度器通过 app.state 注入"""
    manager = manager or QuoteManager()
    config = manager.config
    api_config = config.get_api_config()
    task_scheduler = TaskScheduler(config, ScheduledTasks(manager), enabled=scheduler_enabled)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        api_logger.info("[API] Starting Quote Browser API...")
        await manager.initialize()
        try:
            await task_scheduler.initialize()
        except Exception as e:
            # 调度器只负责周期落盘，失败不阻止服务启动
            api_logger.error(f"[API] Failed to start scheduler: {e}")

        yield

        api_logger.info("[API] Shutting down Quote Browser API...")
        await task_scheduler.shutdown()
        await manager.close()

    app = FastAPI(
        title="Quote Browser API",
        description="Random and categorized quotes, accounts and favorites",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )
    app.state.quote_manager = manager
    app.state.task_scheduler = task_scheduler

    setup_middleware(app, api_config)
    app.include_router(router, prefix="/api")

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check():
        """健康检查端点"""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__
        }

    client_dir = _client_build_dir(api_config.static_dir)
    if client_dir is not None:
        _setup_client_routes(app, client_dir)
        api_logger.info(f"[API] Serving client build from {client_dir}")
    else:
        @app.get("/", tags=["System"])
        async def root():
            """根路径"""
            return {
                "message": "Quote Browser API",
                "version": __version__,
                "docs": "/docs",
                "status": "running"
            }

    return app


def _client_build_dir(static_dir: Optional[str]) -> Optional[Path]:
    """前端构建目录，需存在且包含 index.html"""
    if not static_dir:
        return None
    path = resolve_path(static_dir).resolve()
    if not (path / "index.html").is_file():
        api_logger.warning(f"[API] Client build not found at {path}, serving API only")
        return None
    return path


def _setup_client_routes(app: FastAPI, client_dir: Path) -> None:
    """根路径返回前端页面；其余非 /api 的 GET 请求优先返回构建文件，否则回退到 index.html"""
    index_path = client_dir / "index.html"

    @app.get("/", include_in_schema=False)
    async def client_index():
        return FileResponse(index_path)

    @app.get("/{path:path}", include_in_schema=False)
    async def client_fallback(path: str):
        if path == "api" or path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not Found")
        candidate = (client_dir / path).resolve()
        if candidate.is_file() and client_dir in candidate.parents:
            return FileResponse(candidate)
        return FileResponse(index_path)


app = create_app(QuoteManager(config_manager))
