import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.endpoints import account, admin, catalog, chats
from app.core.database import engine, Base
from app.core.errors import AppError, ValidationError
from app.core.settings import settings
from app.services.cache import CatalogReadCache

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("souk")

app = FastAPI(title="Souk Storefront API")

# One cache per process; instances do not share it.
app.state.catalog_cache = CatalogReadCache(
    categories_ttl_s=settings.catalog_categories_ttl_s,
    featured_ttl_s=settings.catalog_featured_ttl_s,
)

# Configure CORS
origins = settings.resolved_cors_origins()
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.on_event("startup")
def startup() -> None:
    if settings.is_production and not settings.auth_jwt_secret:
        raise RuntimeError("AUTH_JWT_SECRET must be set in production")
    if settings.db_auto_create:
        Base.metadata.create_all(bind=engine)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("api.error kind=%s path=%s detail=%s", exc.kind, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    error = ValidationError("; ".join(problems) or None)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("api.database_error path=%s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal", "detail": "Database error"})


# API Routes
app.include_router(chats.router, prefix="/api", tags=["chats"])
app.include_router(catalog.router, prefix="/api", tags=["catalog"])
app.include_router(account.router, prefix="/api", tags=["account"])
app.include_router(admin.router, prefix="/api", tags=["admin"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
