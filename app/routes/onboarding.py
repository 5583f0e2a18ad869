from fastapi import APIRouter

from app.services.questionnaire import get_catalog

router = APIRouter(tags=["Onboarding"])


@router.get("/questions")
async def get_questions():
    """Questionnaire shown during onboarding"""
    return {"success": True, "questions": get_catalog().model_dump(by_alias=True)}
