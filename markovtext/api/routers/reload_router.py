"""
Model Hot-Reload Router
Reloads saved Markov models from MODEL_DIR into the in-memory cache
"""

from pathlib import Path

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
import logging

from markovtext.config import settings
from markovtext.services.errors import DecodingError
from markovtext.services.markov import MarkovModel
from .markov_router import MODEL_CACHE, model_path, request_model_path

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reload", tags=["reload"])


class ReloadRequest(BaseModel):
    """Request body for reload endpoint"""
    model_name: str = "all"  # a single cached/saved model name, or "all"


class ReloadResponse(BaseModel):
    """Response from reload endpoint"""
    success: bool
    message: str
    reloaded_models: list[str]
    failed_models: dict[str, str] = {}


def saved_model_names() -> list[str]:
    """Names of every model file in MODEL_DIR."""
    model_dir = Path(settings.MODEL_DIR)
    if not model_dir.is_dir():
        return []
    return sorted(
        p.name[: -len(settings.MODEL_FILE_SUFFIX)]
        for p in model_dir.iterdir()
        if p.is_file() and p.name.endswith(settings.MODEL_FILE_SUFFIX)
    )


@router.post("/models", response_model=ReloadResponse)
async def reload_models(request: ReloadRequest):
    """
    Hot-reload models from their saved files.

    - **model_name**: Which model to reload, or "all" for every saved model

    A file that fails to decode leaves the cached model in place.
    """
    if request.model_name == "all":
        names = saved_model_names()
    else:
        if not request_model_path(request.model_name).is_file():
            raise HTTPException(status_code=404, detail=f"no saved model named {request.model_name!r}")
        names = [request.model_name]

    reloaded = []
    failed = {}
    for name in names:
        try:
            MODEL_CACHE[name] = MarkovModel.from_file(model_path(name), seed=settings.RANDOM_SEED)
            reloaded.append(name)
            logger.info(f"[Reload] Reloaded model {name}")
        except (DecodingError, OSError) as e:
            logger.error(f"[Reload] Error reloading {name}: {e}")
            failed[name] = str(e)

    return ReloadResponse(
        success=not failed,
        message=f"Reloaded {len(reloaded)} of {len(names)} models",
        reloaded_models=reloaded,
        failed_models=failed,
    )


@router.get("/status")
async def reload_status():
    """
    Get status of cached and saved models.
    """
    saved = saved_model_names()
    return {
        "model_dir": settings.MODEL_DIR,
        "saved": saved,
        "loaded": {
            name: {"prefixes": model.get_stats().prefixes, "saved": name in saved}
            for name, model in MODEL_CACHE.items()
        },
    }
