"""
Markov Text Service
Main application entry point

Serves training, generation and persistence of word-level Markov models.
On startup the default model is preloaded from (first match):
- the saved model file in MODEL_DIR
- an embedded model resource (EMBEDDED_MODEL_PATH)
- the bundled sample corpus (BUNDLED_CORPUS_PATH), trained in place
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from markovtext.config import settings
from markovtext.services.errors import MarkovError
from markovtext.services.markov import MarkovModel, default_markov_config
from markovtext.services.store import read_embedded
from markovtext.utils.logger import setup_logger

# Setup logging
logger = setup_logger(__name__)


def preload_default_model() -> Optional[MarkovModel]:
    """Load or train the default model, or None when no source is available."""
    path = markov_router.model_path(settings.DEFAULT_MODEL_NAME)
    if path.is_file():
        logger.info(f"[BOOT] Loading saved model {path}")
        return MarkovModel.from_file(path, seed=settings.RANDOM_SEED)

    if settings.EMBEDDED_MODEL_PATH:
        logger.info(f"[BOOT] Loading embedded model {settings.EMBEDDED_MODEL_PATH}")
        return MarkovModel.from_embedded(
            settings.EMBEDDED_MODEL_PACKAGE,
            settings.EMBEDDED_MODEL_PATH,
            seed=settings.RANDOM_SEED,
        )

    if settings.BUNDLED_CORPUS_PATH:
        logger.info(f"[BOOT] Training on bundled corpus {settings.BUNDLED_CORPUS_PATH}")
        text = read_embedded(settings.EMBEDDED_MODEL_PACKAGE, settings.BUNDLED_CORPUS_PATH).decode("utf-8")
        model = MarkovModel(default_markov_config(), seed=settings.RANDOM_SEED)
        return model.build(text, chunk_size=settings.TRAIN_CHUNK_SIZE, max_workers=settings.TRAIN_MAX_WORKERS)

    return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for service initialization"""
    logger.info("[BOOT] Starting Markov Text Service...")

    try:
        if settings.PRELOAD_MODEL:
            model = preload_default_model()
            if model is not None:
                markov_router.MODEL_CACHE[settings.DEFAULT_MODEL_NAME] = model
                stats = model.get_stats()
                logger.info(
                    f"[BOOT] Default model ready: order {stats.order}, "
                    f"{stats.prefixes} prefixes, {stats.transitions} transitions"
                )
            else:
                logger.info("[BOOT] No default model source configured")

        logger.info("[BOOT] Markov Text Service ready!")
        yield

    except Exception as e:
        logger.error(f"[ERR] Failed to initialize: {e}", exc_info=True)
        raise
    finally:
        logger.info("[SHUTDOWN] Markov Text Service stopped")


# Create FastAPI app
app = FastAPI(
    title="Markov Text Service",
    description="Word-level Markov chain text generation",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MarkovError)
async def markov_exception_handler(request: Request, exc: MarkovError):
    logger.error(f"[ERR] Markov error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": {
                "code": "MARKOV_ERROR",
                "message": str(exc),
                "details": {"type": type(exc).__name__},
            },
        },
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"[ERR] Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": {
                "code": "MARKOV_SERVICE_ERROR",
                "message": "Internal server error occurred",
                "details": {"type": type(exc).__name__},
            },
        },
    )


# Health check
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    default_model = markov_router.MODEL_CACHE.get(settings.DEFAULT_MODEL_NAME)
    return {
        "ok": True,
        "data": {
            "status": "healthy",
            "models_loaded": len(markov_router.MODEL_CACHE),
            "default_model_trained": bool(default_model and default_model.is_trained),
        },
    }


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "endpoints": {
            "health": "/health",
            "docs": "/docs",
            "markov": "/markov/*",
            "reload": "/reload/*",
        },
    }


from markovtext.api.routers import (
    markov_router,
    reload_router,
)

app.include_router(markov_router.router)
app.include_router(reload_router.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "markovtext.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
