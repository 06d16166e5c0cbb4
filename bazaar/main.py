import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from bazaar.core.config import settings
from bazaar.core.log_config import configure_logging
from bazaar.api.v1.auth_router import router as auth_router
from bazaar.api.v1.user_router import router as user_router
from bazaar.api.v1.product_router import router as product_router
from bazaar.api.v1.chat_router import router as chat_router
from bazaar.api.v1.admin_router import router as admin_router
from bazaar.api.v1.report_router import router as report_router
from bazaar.db.init_db import init_db
from bazaar.db.seed import seed_fixtures
from bazaar.db.session import engine, SessionLocal, store_guard
from bazaar.services.market_service import MarketService

configure_logging()
logger = logging.getLogger(__name__)

market_service = MarketService()


def run_sweep():
    db = SessionLocal()
    try:
        return market_service.sweep_expired_sales(db)
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Sale sweep failed", exc_info=True)
        return 0
    finally:
        db.close()


async def sweep_once():
    async with store_guard():
        return await run_in_threadpool(run_sweep)


async def sweep_periodically(interval: int):
    while True:
        await asyncio.sleep(interval)
        try:
            await sweep_once()
        except Exception:
            logger.exception("Sale sweep crashed, next attempt in %ds", interval)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(engine)
    if settings.SEED_FIXTURES:
        db = SessionLocal()
        try:
            seed_fixtures(db, settings.FIXTURES_PATH)
        finally:
            db.close()
    await sweep_once()

    task = asyncio.create_task(sweep_periodically(settings.SWEEP_INTERVAL_SECONDS))
    app.state.sweep_task = task
    logger.info("%s started (sweep every %ds)", settings.PROJECT_NAME, settings.SWEEP_INTERVAL_SECONDS)
    try:
        yield
    finally:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("%s stopped", settings.PROJECT_NAME)


app = FastAPI(title="Bazaar Board API", version=settings.PROJECT_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/api/v1")
app.include_router(user_router, prefix="/api/v1")
app.include_router(product_router, prefix="/api/v1")
app.include_router(chat_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(report_router, prefix="/api/v1")


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Something went wrong, please try again"})


@app.get("/health")
def health():
    return {"status": "ok"}
