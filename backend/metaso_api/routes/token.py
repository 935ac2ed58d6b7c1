from fastapi import APIRouter, Depends

from metaso_api.models.request import TokenCheckRequest
from metaso_api.services.metaso import MetasoClient, get_metaso_client

router = APIRouter()


@router.post("/check")
async def check_token(
    body: TokenCheckRequest,
    client: MetasoClient = Depends(get_metaso_client),
):
    """Report whether metaso still accepts a token"""
    return {"live": await client.check_token_live(body.token)}
