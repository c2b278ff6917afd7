# server.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.settings import settings

# --- Logging Configuration ---
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger(__name__)

from storefront import models  # noqa: E402,F401  registers tables on Base.metadata
from storefront.db import Base, engine  # noqa: E402
from storefront.orders import router as orders_router  # noqa: E402
from storefront.products import router as products_router  # noqa: E402

# --- App Initialization ---
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Catalog browsing, product pages and order history for the storefront.",
    version="1.0.0",
)

# --- CORS Middleware ---
origins = [origin.strip() for origin in settings.FRONTEND_URL.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Database Startup Event ---
@app.on_event("startup")
async def on_startup():
    """Create database tables on startup."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("Database tables verified/created.")


@app.on_event("shutdown")
async def on_shutdown():
    await engine.dispose()


# --- Routers ---
app.include_router(products_router, prefix=settings.API_V1_PREFIX)
app.include_router(orders_router, prefix=settings.API_V1_PREFIX)


@app.get("/", tags=["Health"])
async def root():
    return {"message": f"{settings.PROJECT_NAME} is running"}
