from contextlib import asynccontextmanager

from fastapi import FastAPI

from printstudio.core.config import get_settings
from printstudio.core.logger import setup_logger

from printstudio.api import generate_images
from printstudio.services.html_renderer import get_renderer

logger = setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Starting print studio backend...")
    if not settings.wall_image_path.is_file():
        logger.warning(f"Wall image missing at {settings.wall_image_path}; product variant will fail")
    if not settings.shopify_configured:
        logger.info("Shopify not configured; catalog sync disabled")

    yield

    logger.info("Shutting down...")
    await get_renderer().close()


app = FastAPI(
    title="Print Studio",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(generate_images.router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("printstudio.main:app", host="0.0.0.0", port=8000, reload=True)
