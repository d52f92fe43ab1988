import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.broadcast import BroadcastHub, HubClosedError
from app.core.config import settings
from app.core.database import init_models
from app.core.exceptions import (
    AppError, ConflictError, ForbiddenError, NotFoundError, ValidationFailedError,
)
from app.routers import (
    auth_router, user_router, project_router,
    notification_router, realtime_router,
)

# proposal / transaction / task / review 的 router 檔各有 *兩個* router
from app.routers.proposal_router import (
    router as proposal_main_router,
    project_proposal_router,
)
from app.routers.transaction_router import (
    router as transaction_main_router,
    project_transaction_router,
)
from app.routers.task_router import (
    router as task_main_router,
    project_task_router,
)
from app.routers.review_router import (
    router as review_main_router,
    project_review_router,
)

# --- 匯入所有 Model 檔案，讓 SQLAlchemy 在啟動時完成註冊 ---
from app.models import user
from app.models import project
from app.models import proposal
from app.models import transaction
from app.models import notification
from app.models import task
from app.models import review


# 設定基礎日誌
logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 即時廣播中心跟著應用程式一起建立 / 關閉
    app.state.broadcast_hub = BroadcastHub(queue_size=settings.BROADCAST_QUEUE_SIZE)
    await init_models()
    logger.info("Backend started")
    try:
        yield
    finally:
        app.state.broadcast_hub.close()
        logger.info("Backend stopped")


app = FastAPI(lifespan=lifespan)

# --- 設定 CORS (跨來源資源共用) ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], # 生產環境中應限制來源
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- 領域錯誤 -> HTTP 狀態碼 ---
ERROR_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    ConflictError: status.HTTP_409_CONFLICT,
    ValidationFailedError: status.HTTP_400_BAD_REQUEST,
}

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message})

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Body / 參數格式錯誤一律回 400
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_errors(exc)},
    )

@app.exception_handler(HubClosedError)
async def hub_closed_handler(request: Request, exc: HubClosedError):
    # 應用程式關閉中，請用戶端稍後重連
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "即時更新服務暫停中"},
    )

@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Storage error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "資料庫存取失敗"},
    )

def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]

# --- 根路徑 ---
@app.get("/")
def read_root():
    return {"status": "success", "message": "Backend is running!"}

# --- 載入 API 路由 ---
app.include_router(auth_router.router)
app.include_router(user_router.router)
app.include_router(project_router.router)
app.include_router(proposal_main_router)
app.include_router(project_proposal_router)
app.include_router(transaction_main_router)
app.include_router(project_transaction_router)
app.include_router(task_main_router)
app.include_router(project_task_router)
app.include_router(review_main_router)
app.include_router(project_review_router)
app.include_router(notification_router.router)
app.include_router(realtime_router.router)
