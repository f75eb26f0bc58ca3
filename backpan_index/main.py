import logging

from fastapi import FastAPI

from backpan_index.api.backpan import router as backpan_router
from backpan_index.core.dependencies import close_index

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="BackPAN Index",
    version="0.1.0",
    description="Read-only API over a local copy of the BackPAN index.",
)


@app.on_event("shutdown")
def shutdown_event() -> None:
    """Close the index database."""
    close_index()


@app.get("/health")
async def health() -> dict:
    """
    Lightweight health check endpoint.
    """
    return {"status": "ok"}


app.include_router(backpan_router, tags=["backpan"])


if __name__ == "__main__":
    """
    Allow running `python -m backpan_index.main` to start the Uvicorn
    development server.
    """
    import uvicorn

    uvicorn.run(
        "backpan_index.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
