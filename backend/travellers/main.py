"""Travellers - story sharing API."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from travellers.api.security_headers import SecurityHeadersMiddleware
from travellers.config import get_settings
from travellers.errors import register_exception_handlers

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: Create tables and seed categories
    from travellers.database import Base, engine, SessionLocal
    from travellers.services.category_loader import load_categories

    # Import all models so they're registered with Base
    from travellers import models  # noqa: F401

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        load_categories(db)
    finally:
        db.close()

    yield


app = FastAPI(
    title=settings.app_name,
    description="Share travel stories, browse others' and keep a list of favourites",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

if settings.rate_limit_enabled:
    from travellers.api.rate_limit import RateLimitMiddleware, build_limiters

    general_limiter, auth_limiter = build_limiters()
    app.add_middleware(
        RateLimitMiddleware,
        general=general_limiter,
        auth=auth_limiter,
        trusted_proxy_hops=settings.trusted_proxy_hops,
    )

# CORS for frontend (served from a different origin)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Outermost, so rate-limit and CORS responses carry the headers too
app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}


# Import and include routers
from travellers.api import auth, categories, stories, users  # noqa: E402

app.include_router(auth.router)
app.include_router(categories.router)
app.include_router(users.router)
app.include_router(stories.router)
