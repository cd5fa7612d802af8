import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from country_api.database import engine, init_db
from country_api.errors import CountryApiError
from country_api.logging import RequestLoggingMiddleware, init_logging, setup_query_logging
from country_api.routes import countries, status

logger = logging.getLogger("country_api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Country API ready")
    yield


app = FastAPI(
    title="Country Currency & Exchange API",
    version="1.0.0",
    description=(
        "Caches countries with their currency, USD exchange rate and a rough GDP estimate.\n\n"
        "Features:\n"
        "- Refresh from RestCountries and open.er-api\n"
        "- Filter by region and currency, sort by name, population, or estimated GDP\n"
        "- Status and a generated summary image"
    ),
    lifespan=lifespan,
)

# Initialize logging and middleware
init_logging()
app.add_middleware(RequestLoggingMiddleware)
setup_query_logging(engine)

app.include_router(countries.router, prefix="/countries", tags=["Countries"])
app.include_router(status.router, prefix="/status", tags=["Status"])


@app.get("/")
def root():
    return {"message": "Country Currency & Exchange API running. Visit /docs for API documentation."}


# -------------------------------
# Unified error response handlers
# -------------------------------
@app.exception_handler(CountryApiError)
async def country_api_error_handler(request: Request, exc: CountryApiError):
    log = logger.error if exc.status_code >= 500 else logger.info
    log("%s: %s %s -> %s | %s", type(exc).__name__, request.method, request.url.path, exc.status_code, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.info("HTTPException: %s %s -> %s | detail=%s", request.method, request.url.path, exc.status_code, exc.detail)
    body = {"error": exc.detail if isinstance(exc.detail, str) else "Error"}
    if isinstance(exc.detail, dict):
        body = {
            "error": exc.detail.get("error") or "Error",
            "details": exc.detail.get("details"),
        }
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("ValidationError: %s %s | errors=%s", request.method, request.url.path, exc.errors())
    details = {".".join(str(p) for p in err["loc"][1:]) or "request": err["msg"] for err in exc.errors()}
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": details},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
