import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from worksheetgen.api import health, sources, worksheets
from worksheetgen.core.config import get_settings
from worksheetgen.core.deps import build_generation_client

logger = logging.getLogger("worksheetgen")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Missing API key fails here, at startup, never per request.
    app.state.generation_client = build_generation_client(get_settings())
    logger.info("Generation client ready (provider=%s)", get_settings().llm_provider)
    yield


app = FastAPI(
    title=settings.app_name,
    description="Generate printable worksheets on any topic with an LLM",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.frontend_url,
        "http://localhost:5173",  # Vite dev server
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(worksheets.router)
app.include_router(sources.router)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "docs": "/docs",
        "health": "/health",
    }
