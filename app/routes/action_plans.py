"""
Action plan routes: 12-week plan generation, detailed opportunity plans and
per-user plan storage.
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.middleware.auth import get_current_user
from app.models.user import User
from app.schemas.action_plan import DetailedPlanRequest, GenerateActionPlanRequest, SavePlanRequest
from app.services import action_plan_service
from app.services.llm_client import LLM_ERRORS, LLMClient, get_llm_client
from app.utils.logger import logger

router = APIRouter(tags=["Action Plans"])
limiter = Limiter(key_func=get_remote_address)


@router.post("/generate-action-plan")
@limiter.limit("10/hour")
async def generate_action_plan(
    request: Request,
    data: GenerateActionPlanRequest,
    llm: LLMClient = Depends(get_llm_client),
):
    try:
        plan, warnings = await action_plan_service.generate_action_plan(llm, data)
    except LLM_ERRORS:
        raise
    except Exception as e:
        logger.error(f"[ActionPlan] Generation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate action plan: {e}")

    response = {"success": True, "plan": plan}
    if warnings:
        response["validationWarnings"] = warnings
    return response


@router.post("/generate-detailed-action-plan")
@limiter.limit("10/hour")
async def generate_detailed_action_plan(
    request: Request,
    data: DetailedPlanRequest,
    llm: LLMClient = Depends(get_llm_client),
):
    if not data.opportunities:
        raise HTTPException(status_code=400, detail="No hay oportunidades seleccionadas")

    logger.info(f"[DetailedPlan] Building plan from {len(data.opportunities)} opportunities")
    try:
        plan = await action_plan_service.generate_detailed_plan(llm, data)
    except LLM_ERRORS:
        raise
    except Exception as e:
        logger.error(f"[DetailedPlan] Generation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate detailed action plan: {e}")

    return {"success": True, "plan": plan}


@router.post("/action-plan/save")
async def save_action_plan(
    data: SavePlanRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await action_plan_service.save_plan(db, current_user.supabase_id, data.plan)
    return {"success": True, "message": "Plan saved successfully"}


@router.get("/action-plan/load")
async def load_action_plan(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    plan = await action_plan_service.load_plan(db, current_user.supabase_id)
    if plan is None:
        return {"success": True, "plan": None, "message": "No saved plan found"}
    return {"success": True, "plan": plan}
