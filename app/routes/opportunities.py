from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.schemas.opportunities import LocalSearchRequest, OpportunitiesRequest
from app.services import opportunity_service
from app.services.llm_client import LLM_ERRORS, LLMClient, get_llm_client
from app.utils.logger import logger

router = APIRouter(tags=["Opportunities"])
limiter = Limiter(key_func=get_remote_address)


@router.post("/get-opportunities")
async def get_opportunities(data: OpportunitiesRequest):
    opportunities = opportunity_service.get_opportunities(data.pathways)
    return {"success": True, "opportunities": opportunities}


@router.post("/search-local-opportunities")
@limiter.limit("20/hour")
async def search_local_opportunities(
    request: Request,
    data: LocalSearchRequest,
    llm: LLMClient = Depends(get_llm_client),
):
    """Real opportunities near the student, found by the LLM"""
    logger.info(f"[LocalSearch] {data.pathway} @ {data.location}")
    try:
        opportunities = await opportunity_service.search_local_opportunities(
            llm,
            pathway=data.pathway,
            location=data.location,
            specific_topic=data.specific_topic,
            user_responses=data.user_responses,
        )
    except LLM_ERRORS:
        raise
    except Exception as e:
        logger.error(f"[LocalSearch] Search failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to search local opportunities: {e}")

    return {"success": True, "opportunities": opportunities}
