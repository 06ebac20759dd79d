"""Lineups — FastAPI Application Entry Point."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from lineups.config import settings
from lineups.middleware.rate_limit import limiter
from lineups.routers import auth, profile, compositions
from lineups.database import engine, Base
from lineups.schemas.composition import FieldErrorResponse, ValidationErrorDetail
import lineups.models  # noqa: F401  (registers tables on Base.metadata)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Create all tables on startup
Base.metadata.create_all(bind=engine)

_cors_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app = FastAPI(
    title="Lineups",
    description="Design, store and export football team compositions.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report request validation problems as 400 with one entry per field."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "path", "query")]
        errors.append(FieldErrorResponse(field=".".join(loc) or "body", message=err.get("msg", "Invalid value")))
    detail = ValidationErrorDetail(errors=errors)
    return JSONResponse(status_code=400, content={"detail": detail.model_dump()})


# Routers
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(compositions.router)


@app.get("/")
def root():
    return {
        "name": "Lineups API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "ok"}
