from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from metaso_api.services.completions import MODELS

router = APIRouter()


@router.get("/ping", response_class=PlainTextResponse)
async def ping():
    return "pong"


@router.get("/api/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "models": list(MODELS),
    }
