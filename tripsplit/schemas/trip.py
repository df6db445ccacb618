from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


class SplitData(BaseModel):
    percentages: Optional[List[float]] = None
    amounts: Optional[List[float]] = None


class SplitRequest(BaseModel):
    type: str
    data: Optional[SplitData] = None


class PersonAllocation(BaseModel):
    person: str
    amount: float


class SplitResponse(BaseModel):
    allocations: List[PersonAllocation]
    difference: Optional[float] = None


class PersonSummary(BaseModel):
    name: str
    paid: float
    owed: float
    net: float


class SettlementSuggestion(BaseModel):
    from_: str = Field(serialization_alias="from", validation_alias="from")
    to: str
    amount: float

    model_config = ConfigDict(populate_by_name=True)


class SummaryResponse(BaseModel):
    people: List[PersonSummary]
    settlements: List[SettlementSuggestion]


class PlanCategoryIn(BaseModel):
    name: str = ""
    amount: Optional[float] = None
    percent: Optional[float] = None


class PlanRequest(BaseModel):
    totalBudget: Optional[float] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    categories: List[PlanCategoryIn] = []


class PlanCategoryOut(BaseModel):
    name: str
    amount: float


class PlanResponse(BaseModel):
    perDayBudget: float
    days: int
    categories: List[PlanCategoryOut]
    allocatedSum: float
    difference: float
    alerts: List[str]
    aiSuggestion: str
