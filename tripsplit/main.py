from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from tripsplit.core.config import settings
from tripsplit.core.logging import configure_logging, get_logger
from tripsplit.db.mongo import connect_to_mongo, close_mongo_connection
from tripsplit.api.v1.api import api_router
from tripsplit.utils.split_validation import EngineError

configure_logging(level=settings.LOG_LEVEL, format_json=settings.LOG_JSON)
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
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    logger.info("request_rejected", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=400, content={"error": str(exc)})

@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})

@app.get("/")
async def root():
    return {"message": "Welcome to TripSplit API"}

app.include_router(api_router, prefix=settings.API_V1_STR)
