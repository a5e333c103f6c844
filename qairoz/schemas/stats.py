from typing import Dict

from pydantic import Field

from qairoz.schemas.common import CamelModel, IsoDatetime


class StatsOut(CamelModel):
    total_colleges: int
    total_students: int
    last_updated: IsoDatetime
    sport_breakdown: Dict[str, int] = Field(default_factory=dict)
    course_breakdown: Dict[str, int] = Field(default_factory=dict)
    year_breakdown: Dict[str, int] = Field(default_factory=dict)
    college_breakdown: Dict[str, int] = Field(default_factory=dict)
