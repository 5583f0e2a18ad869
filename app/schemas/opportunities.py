from typing import List, Optional
from pydantic import Field

from app.schemas.common import CamelModel, UserResponses


class Opportunity(CamelModel):
    id: str
    type: str  # internship/course/study_plan/summer_camp/local_opportunity
    title: str
    description: str
    provider: str
    duration: str
    location: Optional[str] = None
    level: Optional[str] = None


class OpportunitiesRequest(CamelModel):
    pathways: List[str]


class LocalSearchRequest(CamelModel):
    pathway: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1, max_length=200)
    specific_topic: Optional[str] = Field(None, max_length=300)
    user_responses: Optional[UserResponses] = None
