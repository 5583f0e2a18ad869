"""
Pydantic schemas for the 12-week action plan and the detailed opportunity plan.

Plan models are deliberately lenient: they describe what the model is asked
to produce, keep unknown keys, and are used for non-blocking validation.
"""
from typing import Any, Dict, List, Optional, Union
from pydantic import ConfigDict, Field

from app.schemas.common import CamelModel, UserResponses


class LenientModel(CamelModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


# ========== Generated plan ==========
class PlanTask(LenientModel):
    task: str
    priority: Optional[str] = None  # high/medium/low
    daily_habit: Optional[bool] = None
    estimated_time: Optional[str] = None


class PlanWeek(LenientModel):
    week: int = Field(..., ge=1)
    title: str = ""
    pathway_focus: Optional[str] = None
    tasks: List[PlanTask] = Field(default_factory=list)
    milestone: Optional[str] = None


class PlanOpportunity(LenientModel):
    type: Optional[str] = None
    title: str
    provider: Optional[str] = None
    pathway: Optional[str] = None
    description: Optional[str] = None
    application_period: Optional[str] = None
    deadline: Optional[str] = None
    cost: Optional[str] = None
    url: Optional[str] = None
    recommended_week: Optional[Union[int, str]] = None


class PlanResource(LenientModel):
    type: Optional[str] = None
    title: str
    pathway: Optional[str] = None
    description: Optional[str] = None
    cost: Optional[str] = None
    url: Optional[str] = None
    timing: Optional[str] = None


class PlanReminder(LenientModel):
    week: Optional[int] = None
    title: str
    description: Optional[str] = None
    type: Optional[str] = None
    priority: Optional[str] = None


class PlanCheckpoint(LenientModel):
    week: int
    title: str = ""
    checkpoint: Optional[str] = None
    success_metrics: List[str] = Field(default_factory=list)


class ActionPlan(LenientModel):
    title: str = ""
    overview: str = ""
    weeks: List[PlanWeek]
    opportunities: List[PlanOpportunity] = Field(default_factory=list)
    resources: List[PlanResource] = Field(default_factory=list)
    reminders: List[PlanReminder] = Field(default_factory=list)
    checkpoints: List[PlanCheckpoint] = Field(default_factory=list)


# ========== Requests ==========
class SchoolInfo(CamelModel):
    school_type: str
    school_name: str = Field(..., min_length=1)
    current_year: int = Field(..., ge=1, le=12)


class GenerateActionPlanRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    selected_pathways: List[str] = Field(..., min_length=1, max_length=5)
    school_info: SchoolInfo
    open_responses: Dict[str, Optional[str]] = Field(default_factory=dict)
    preference_responses: Dict[str, Optional[str]] = Field(default_factory=dict)


class SavePlanRequest(CamelModel):
    plan: Dict[str, Any]


class DetailedPlanRequest(CamelModel):
    opportunities: List[Dict[str, Any]]
    pathways: List[str] = Field(default_factory=list)
    user_responses: Optional[UserResponses] = None


# ========== Detailed plan ==========
class DetailedStep(LenientModel):
    step: int
    title: str
    description: str = ""
    timeline: str = ""
    priority: Optional[str] = None
    related_opportunity: Optional[str] = None
    tasks: List[str] = Field(default_factory=list)


class DetailedMilestone(LenientModel):
    week: Optional[int] = None
    description: str


class DetailedPlan(LenientModel):
    overview: str = ""
    total_duration: str = ""
    steps: List[DetailedStep]
    milestones: List[DetailedMilestone] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)
