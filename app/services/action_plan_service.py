"""
Action Plan Service
Generates the 12-week plan and the detailed opportunity plan with the LLM,
and persists each user's active plan.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.action_plan import ActionPlan as ActionPlanModel
from app.schemas.action_plan import (
    ActionPlan,
    DetailedPlan,
    DetailedPlanRequest,
    GenerateActionPlanRequest,
)
from app.services.json_repair import LLMResponseParseError, extract_json
from app.services.llm_client import LLMClient
from app.services import prompts
from app.utils.logger import logger


def validate_plan(plan_data: Dict[str, Any]) -> List[Dict[str, str]]:
    """
    Check a generated plan against the ActionPlan schema.

    Advisory only: returns a list of {field, error} warnings and never
    blocks the response.
    """
    try:
        ActionPlan.model_validate(plan_data)
        return []
    except ValidationError as e:
        return [
            {"field": ".".join(str(p) for p in err["loc"]), "error": err["msg"]}
            for err in e.errors()
        ]


async def generate_action_plan(
    llm: LLMClient, data: GenerateActionPlanRequest
) -> Tuple[Dict[str, Any], List[Dict[str, str]]]:
    """
    Generate a 12-week plan for the selected pathways.

    Returns (plan, validation_warnings). Raises LLMResponseParseError when
    no plan with a weeks list can be recovered.
    """
    logger.info(
        f"Generating action plan for {len(data.selected_pathways)} pathways",
        extra={"pathways": data.selected_pathways},
    )
    prompt = prompts.build_action_plan_prompt(data)
    text = await llm.generate_text(prompt, max_tokens=4000, temperature=0.7, operation="action_plan")

    plan = extract_json(text, require_key="weeks")
    if not isinstance(plan["weeks"], list):
        raise LLMResponseParseError(
            "Failed to parse action plan - invalid format (weeks is not a list)", raw_text=text
        )

    plan["pathways"] = list(data.selected_pathways)
    plan["createdAt"] = datetime.now(timezone.utc).isoformat()
    plan["studentName"] = data.name

    warnings = validate_plan(plan)
    if warnings:
        logger.warning(f"Action plan has {len(warnings)} validation warnings (non-blocking)")
        for w in warnings[:5]:
            logger.warning(f"  {w['field']}: {w['error']}")

    logger.info(
        "Action plan generated",
        extra={
            "weeks": len(plan["weeks"]),
            "count": len(plan.get("opportunities") or []),
        },
    )
    return plan, warnings


async def generate_detailed_plan(llm: LLMClient, data: DetailedPlanRequest) -> Dict[str, Any]:
    prompt = prompts.build_detailed_plan_prompt(data.opportunities, data.pathways, data.user_responses)
    text = await llm.generate_text(
        prompt,
        system=prompts.DETAILED_PLAN_SYSTEM_PROMPT,
        max_tokens=3000,
        temperature=0.7,
        operation="detailed_plan",
    )

    plan = extract_json(text, require_key="steps")
    if not isinstance(plan["steps"], list):
        raise LLMResponseParseError("Invalid LLM response structure (steps is not a list)", raw_text=text)

    try:
        DetailedPlan.model_validate(plan)
    except ValidationError as e:
        logger.warning(f"[DetailedPlan] Validation warnings (non-blocking): {len(e.errors())}")
    return plan


# ========== Persistence ==========
async def save_plan(db: AsyncSession, user_id: str, plan: Dict[str, Any]) -> ActionPlanModel:
    """Upsert the user's active plan; the plan is stored verbatim"""
    result = await db.execute(
        select(ActionPlanModel).where(ActionPlanModel.user_id == user_id)
    )
    record = result.scalar_one_or_none()
    pathways = plan.get("pathways")

    if record:
        record.plan_data = plan
        record.pathways = pathways
        record.status = "active"
        record.updated_at = datetime.utcnow()
        logger.info(f"[ActionPlan] Updated plan for {user_id}")
    else:
        record = ActionPlanModel(
            user_id=user_id,
            pathways=pathways,
            plan_data=plan,
            status="active",
        )
        db.add(record)
        logger.info(f"[ActionPlan] Created plan for {user_id}")

    await db.commit()
    await db.refresh(record)
    return record


async def load_plan(db: AsyncSession, user_id: str) -> Optional[Dict[str, Any]]:
    result = await db.execute(
        select(ActionPlanModel).where(
            ActionPlanModel.user_id == user_id,
            ActionPlanModel.status == "active",
        )
    )
    record = result.scalar_one_or_none()
    return record.plan_data if record else None
