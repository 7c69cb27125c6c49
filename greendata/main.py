import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from greendata.core.config import settings
from greendata.core.change_feed import change_feed
from greendata.core.change_relay import relay_for
from greendata.core.database import create_tables, engine
from greendata.core.logging_config import logger, setup_logging
from greendata.api.v1 import endpoints

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Starting %s %s", settings.PROJECT_NAME, settings.VERSION)
    if settings.AUTO_CREATE_TABLES:
        await create_tables()
        logger.info("Database tables ensured")

    relay = relay_for(engine.url, change_feed, settings.CHANGE_FEED_CHANNEL, settings.CHANGE_FEED_RETRY_SECONDS)
    relay_task = asyncio.create_task(relay.run()) if relay else None
    try:
        yield
    finally:
        if relay_task:
            relay_task.cancel()
            try:
                await relay_task
            except asyncio.CancelledError:
                pass
        logger.info("Shutting down %s", settings.PROJECT_NAME)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health check
@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.VERSION}

app.include_router(endpoints.router, prefix=settings.API_V1_STR)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("greendata.main:app", host="0.0.0.0", port=8000)
