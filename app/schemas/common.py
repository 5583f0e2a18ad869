"""
Shared request models. The browser speaks camelCase; Python attributes are
snake_case and every model accepts either.
"""
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class UserResponses(CamelModel):
    """Questionnaire context the dashboard sends along with follow-up requests"""
    open_responses: Dict[str, Optional[str]] = Field(default_factory=dict)
    preference_responses: Dict[str, Optional[str]] = Field(default_factory=dict)
    selected_pathways: List[str] = Field(default_factory=list)
    school_type: Optional[str] = None
    current_year: Optional[Union[int, str]] = None
