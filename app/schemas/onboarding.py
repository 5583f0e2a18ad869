"""
Pydantic schemas for onboarding and pathway analysis
"""
from typing import Dict, List, Optional
from pydantic import Field, field_validator

from app.schemas.common import CamelModel, UserResponses


# ========== Questionnaire ==========
class OpenEndedQuestion(CamelModel):
    id: str
    label: str
    placeholder: str


class ChoiceQuestion(CamelModel):
    """Multiple-choice question (preferences and university purpose)"""
    id: str
    question: str
    options: List[str]


class QuestionCatalog(CamelModel):
    open_ended: List[OpenEndedQuestion]
    preferences: List[ChoiceQuestion]
    university_purpose: List[ChoiceQuestion]


# ========== Student Profile ==========
class Grade(CamelModel):
    subject: str = Field(..., min_length=1)
    grade: float = Field(..., ge=0, le=10, description="0-10 scale")


class StudentProfile(CamelModel):
    """Everything the onboarding flow collects before analysis"""
    name: str = Field(..., min_length=1, max_length=200)
    school_type: str = Field(..., description="colegio/universidad")
    school_name: str = Field(..., min_length=1, max_length=300)
    current_year: int = Field(..., ge=1, le=12)
    open_responses: Dict[str, Optional[str]] = Field(default_factory=dict)
    preference_responses: Dict[str, Optional[str]] = Field(default_factory=dict)
    university_purpose_responses: Dict[str, Optional[str]] = Field(default_factory=dict)
    grades: List[Grade] = Field(default_factory=list)

    @field_validator("name", "school_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


# ========== Pathways ==========
class Pathway(CamelModel):
    name: str
    rationale: str = ""
    action_steps: List[str] = Field(default_factory=list)
    timeline: str = ""


class PathwaySuggestionRequest(CamelModel):
    pathway: str = Field(..., min_length=1)
    user_suggestion: str = Field(..., min_length=1, max_length=4000)
    user_responses: Optional[UserResponses] = None


class PathwayActivitiesRequest(CamelModel):
    pathway: str = Field(..., min_length=1)
    user_responses: Optional[UserResponses] = None


class PersonalizedActivity(CamelModel):
    title: str
    description: str = ""
    timeframe: str = ""
    difficulty: str = "beginner"
    link: Optional[str] = None
    relevance: str = ""
