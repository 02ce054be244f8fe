from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any, Union
from datetime import datetime
from enum import Enum


class RunStatus(str, Enum):
    PENDING_REVIEW = "pending_review"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_FAILURES = "completed_with_failures"
    ERROR = "error"


class TestStatus(str, Enum):
    PENDING = "pending"
    PASS = "pass"
    FAIL = "fail"


class TestStep(BaseModel):
    """One scripted step. target is a descriptor id, role token or raw locator."""
    model_config = ConfigDict(extra="allow")

    action: str
    target: Optional[str] = None
    value: Optional[Union[str, int, float]] = None
    description: Optional[str] = None


class TestCase(BaseModel):
    # Plan generators attach their own fields (priority, category, ...)
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    description: Optional[str] = None
    steps: List[TestStep] = []
    status: TestStatus = TestStatus.PENDING
    screenshots: List[str] = []
    error: Optional[str] = None


class PageData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    page_type: Optional[str] = Field(default=None, alias="pageType")
    elements: List[Dict[str, Any]] = []


class TestRun(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    url: str
    status: RunStatus = RunStatus.PENDING_REVIEW
    created_at: datetime = Field(default_factory=datetime.now, alias="createdAt")
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")
    page_data: PageData = Field(default_factory=PageData, alias="pageData")
    tests: List[TestCase] = []
    confidence: Optional[float] = None
    error: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        """JSON-ready camelCase document"""
        return self.model_dump(mode="json", by_alias=True)


# Request models

class InspectRequest(BaseModel):
    url: str


class CreateTestRunRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    page_data: PageData = Field(default_factory=PageData, alias="pageData")
    tests: List[TestCase] = []
    confidence: Optional[float] = None


class UpdateTestRunRequest(BaseModel):
    tests: List[TestCase]
