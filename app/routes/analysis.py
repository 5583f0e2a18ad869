"""
Pathway analysis routes: recommendations from the onboarding profile and
follow-up exploration of a chosen pathway.
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.schemas.onboarding import PathwayActivitiesRequest, PathwaySuggestionRequest, StudentProfile
from app.services import pathway_service
from app.services.llm_client import LLM_ERRORS, LLMClient, get_llm_client
from app.utils.logger import logger

router = APIRouter(tags=["Pathways"])
limiter = Limiter(key_func=get_remote_address)


@router.post("/analyze-responses")
@limiter.limit("20/hour")
async def analyze_responses(
    request: Request,
    profile: StudentProfile,
    llm: LLMClient = Depends(get_llm_client),
):
    """Recommend three career pathways for the student"""
    logger.info(
        f"[Pathways] Analyzing responses for {profile.school_type} student, year {profile.current_year}",
        extra={"count": len(profile.grades)},
    )
    try:
        pathways = await pathway_service.analyze_responses(llm, profile)
    except LLM_ERRORS:
        raise
    except Exception as e:
        logger.error(f"[Pathways] Analysis failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to analyze responses: {e}")

    return {"success": True, "pathways": pathways}


@router.post("/analyze-pathway-suggestion")
@limiter.limit("30/hour")
async def analyze_pathway_suggestion(
    request: Request,
    data: PathwaySuggestionRequest,
    llm: LLMClient = Depends(get_llm_client),
):
    try:
        analysis = await pathway_service.analyze_suggestion(
            llm, data.pathway, data.user_suggestion, data.user_responses
        )
    except LLM_ERRORS:
        raise
    except Exception as e:
        logger.error(f"[Pathways] Suggestion analysis failed for '{data.pathway}': {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to analyze suggestion: {e}")

    return {"success": True, "analysis": analysis}


@router.post("/generate-pathway-activities")
@limiter.limit("30/hour")
async def generate_pathway_activities(
    request: Request,
    data: PathwayActivitiesRequest,
    llm: LLMClient = Depends(get_llm_client),
):
    """4-5 starter activities; falls back to a curated list when the model output is unusable"""
    try:
        activities = await pathway_service.generate_activities(llm, data.pathway, data.user_responses)
    except LLM_ERRORS:
        raise
    except Exception as e:
        logger.error(f"[Activities] Generation failed for '{data.pathway}': {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate activities: {e}")

    return {"success": True, "activities": activities}
