import logging
from typing import Annotated

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.models import HealthResponse
from src.api.routes.extraction import get_extraction_service
from src.api.routes.extraction import router as extraction_router
from src.config import settings
from src.extraction.service import ExtractionService

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Action Extractor API",
    description="Extract tasks and a follow-up message from meeting notes or emails",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:8501",
    ],
    allow_origin_regex=r"https://.*\.vercel\.app|http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(extraction_router)


@app.get("/health", response_model=HealthResponse)
async def health(
    service: Annotated[ExtractionService, Depends(get_extraction_service)],
) -> HealthResponse:
    return HealthResponse(status="healthy", strategy=service.strategy.value)


def serve() -> None:
    """Run the API with uvicorn on the configured host and port."""
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    serve()
