from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .database import engine, Base
from .routers import catalog, tile_catalog, curtains_quotes, tile_quotes

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("quotekit")

# Create tables (handles new tables but won't add columns to existing ones)
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="QuoteKit",
    description="Curtains, blinds and tile quotation tool",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(catalog.router, prefix="/api")
app.include_router(tile_catalog.router, prefix="/api")
app.include_router(curtains_quotes.router, prefix="/api")
app.include_router(tile_quotes.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "quotekit"}


@app.on_event("startup")
def auto_seed():
    """Seed the default curtains catalog on first run."""
    from .database import SessionLocal
    db = SessionLocal()
    try:
        added = catalog.seed_default_catalog(db)
        if added:
            logger.info(f"Seeded default catalog ({added} rows)")
    finally:
        db.close()
