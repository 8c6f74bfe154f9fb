import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contacts import router as contacts_router
from contacts import schema as contacts_schema
from core import config, db

load_dotenv()
config.configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Missing DB settings raise ConfigurationError here and abort startup.
    await db.init_pool()
    # Best-effort: a store that is down only puts the API in degraded mode.
    await contacts_schema.initialize()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(lifespan=lifespan)

origins = config.cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials="*" not in origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(contacts_router.router, tags=["contacts"])


INTERNAL_ERROR_MESSAGE = "An error occurred while processing your request. Please try again."


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail) or "Error")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, "Invalid request payload.")


@app.exception_handler(db.ConnectivityError)
async def connectivity_exception_handler(request: Request, exc: db.ConnectivityError) -> JSONResponse:
    logger.warning("contact_store_unavailable path=%s reason=%s", request.url.path, exc.reason)
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Contact store is temporarily unavailable.")


@app.exception_handler(db.DataError)
async def data_exception_handler(request: Request, exc: db.DataError) -> JSONResponse:
    logger.error("contact_store_error path=%s error=%s", request.url.path, exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error path=%s error=%s", request.url.path, exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@app.get("/api/health")
def health() -> dict:
    return {
        "status": "OK",
        "message": "Contact API is running",
        "timestamp": _now_iso(),
        "endpoints": {
            "POST /api/contact": "Submit contact form",
            "GET /api/contact": "Contact API usage",
            "GET /api/contacts": "Get all contacts (admin)",
            "GET /api/contacts/:id": "Get single contact",
            "PUT /api/contacts/:id/status": "Update contact status",
            "GET /api/health": "Health check",
            "GET /api/test": "Test endpoint",
        },
    }


@app.get("/api/test")
def api_test() -> dict:
    return {
        "success": True,
        "message": "API is working correctly",
        "timestamp": _now_iso(),
    }


@app.get("/")
def root() -> dict:
    return {"message": "contact submissions api"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.listen_port())
