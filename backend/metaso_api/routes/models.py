from fastapi import APIRouter

from metaso_api.models.response import ModelCard, ModelList
from metaso_api.services.completions import MODELS

router = APIRouter()


@router.get("/models")
async def list_models() -> ModelList:
    """List the metaso search modes usable as model names"""
    return ModelList(data=[ModelCard(id=model) for model in MODELS])
