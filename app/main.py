from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.config import settings
from app.core.dependencies import get_store
from app.core.errors import ServiceError
from app.db.client import Store
from app.db.query import check_connection
from app.routers import order_router, product_router
from app.schemas.base import HealthCheckResponse

import uvicorn

# 配置日志
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")

    # 数据源连接检查（失败不阻止启动）
    store = get_store()
    status = check_connection(store)
    if status["status"] == "connected":
        logger.info(f"✅ Store connection successful ({store.kind})")
    else:
        logger.warning(f"⚠️  Store connection failed: {status.get('error')}")
        logger.warning("⚠️  Server will continue but store-dependent features may fail")

    yield

    logger.info("Shutting down application...")
    store.close()

# 创建 FastAPI 应用
app = FastAPI(
    title="Storefront API",
    description="商品目录与下单服务",
    version="1.0.0",
    lifespan=lifespan
)

# 添加 CORS 中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGIN.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(product_router.router, prefix="/api")
app.include_router(order_router.router, prefix="/api")

# 全局异常处理
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error: {exc}")
    if request.url.path.startswith("/api/orders") and request.method == "POST":
        message = "Invalid order data."
    else:
        message = "Invalid request data."
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": message,
            "details": jsonable_errors(exc)
        }
    )

def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]

@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"Service error: {exc.kind.value} [{exc.code}] {exc.message}")
    else:
        logger.info(f"Request rejected: {exc.kind.value} [{exc.code}] {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.message,
            "error": exc.to_dict()
        }
    )

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.info(f"HTTP error: {exc.status_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail
        }
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error",
            "error": str(exc)
        }
    )

# 健康检查端点
@app.get("/api/health", response_model=HealthCheckResponse)
def health_check(store: Store = Depends(get_store)):
    """健康检查接口"""
    return {
        "status": "up",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {"type": store.kind, **check_connection(store)},
        "environment": settings.ENVIRONMENT,
    }

@app.get("/")
async def read_root():
    """API 根路径"""
    return {
        "message": "Storefront API is running",
        "docs": "/docs",
        "health": "/api/health"
    }




if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=True
    )
