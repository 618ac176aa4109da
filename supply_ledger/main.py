from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from supply_ledger.core.config import settings
from supply_ledger.core.exceptions import SupplyLedgerError
from supply_ledger.core.logging import configure_logging, get_logger
from supply_ledger.db.mongo import connect_to_mongo, close_mongo_connection
from supply_ledger.api.v1.api import api_router

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    yield
    await close_mongo_connection()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SupplyLedgerError)
async def supply_ledger_error_handler(request: Request, exc: SupplyLedgerError):
    logger.info(
        "request_failed",
        path=request.url.path,
        error=type(exc).__name__,
        detail=exc.message
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__}
    )


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}"}

app.include_router(api_router, prefix=settings.API_V1_STR)
