from dataclasses import asdict, replace
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from markovtext.config import settings
from markovtext.services.chain import MarkovConfig
from markovtext.services.errors import BrokenChainError, DecodingError, UntrainedModelError
from markovtext.services.markov import MarkovModel, default_markov_config, train_from_corpus
from markovtext.utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/markov", tags=["markov"])

# In-memory model cache (CPU-friendly)
MODEL_CACHE: dict[str, MarkovModel] = {}


class TrainRequest(BaseModel):
    corpus: list[str]
    model_name: str = "default"
    order: Optional[int] = None
    max_repeat: Optional[int] = None
    min_sentence_len: Optional[int] = None
    max_sentence_len: Optional[int] = None
    paragraph_break: Optional[int] = None
    stop_tokens: Optional[str] = None


class GenerateRequest(BaseModel):
    model_name: str = "default"
    word_count: int = Field(default=settings.DEFAULT_WORD_COUNT, ge=1, le=settings.MAX_WORD_COUNT)


class PersistRequest(BaseModel):
    model_name: str = "default"


def model_path(model_name: str) -> Path:
    """
    <MODEL_DIR>/<model_name><MODEL_FILE_SUFFIX>, resolved.

    Raises:
        ValueError: the name resolves to a file outside MODEL_DIR
    """
    root = Path(settings.MODEL_DIR).resolve()
    path = (root / f"{model_name}{settings.MODEL_FILE_SUFFIX}").resolve()
    if path.parent != root:
        raise ValueError(f"invalid model name: {model_name!r}")
    return path


def request_model_path(model_name: str) -> Path:
    """model_path for a client-supplied name; bad names are a 400."""
    try:
        return model_path(model_name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def get_model(model_name: str) -> MarkovModel:
    model = MODEL_CACHE.get(model_name)
    if not model:
        raise HTTPException(status_code=404, detail="model not found, train first")
    return model


def _config_from_request(req: TrainRequest) -> MarkovConfig:
    overrides = {
        key: value
        for key, value in req.model_dump(exclude={"corpus", "model_name"}).items()
        if value is not None
    }
    return replace(default_markov_config(), **overrides)


@router.post("/train")
async def train(req: TrainRequest):
    if not any(doc.strip() for doc in req.corpus):
        raise HTTPException(status_code=400, detail="corpus is empty")
    model = train_from_corpus(req.corpus, _config_from_request(req), seed=settings.RANDOM_SEED)
    MODEL_CACHE[req.model_name] = model
    stats = model.get_stats()
    logger.info(f"[Markov] Trained {req.model_name}: {stats.prefixes} prefixes")
    return {"ok": True, "model": req.model_name, "order": model.order, "stats": asdict(stats)}


@router.post("/generate")
async def generate(req: GenerateRequest):
    model = get_model(req.model_name)
    try:
        text = model.generate(req.word_count)
    except UntrainedModelError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except BrokenChainError as e:
        logger.error(f"[ERR] Generation failed for {req.model_name}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"ok": True, "data": {"text": text, "word_count": req.word_count}}


@router.post("/save")
async def save(req: PersistRequest):
    model = get_model(req.model_name)
    path = model.save_to_file(request_model_path(req.model_name))
    return {"ok": True, "model": req.model_name, "path": str(path)}


@router.post("/load")
async def load(req: PersistRequest):
    path = request_model_path(req.model_name)
    try:
        model = MarkovModel.from_file(path, seed=settings.RANDOM_SEED)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"model file not found: {path.name}")
    except DecodingError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except OSError as e:
        logger.error(f"[ERR] Cannot read model file {path}: {e}")
        raise HTTPException(status_code=400, detail=f"cannot read model file: {path.name}")
    MODEL_CACHE[req.model_name] = model
    return {"ok": True, "model": req.model_name, "order": model.order, "stats": asdict(model.get_stats())}


@router.get("/models")
async def list_models():
    return {
        "ok": True,
        "data": {name: asdict(model.get_stats()) for name, model in MODEL_CACHE.items()},
    }
