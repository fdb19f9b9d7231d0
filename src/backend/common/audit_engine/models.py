from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ENGINE_NAME = "audit-engine"
ENGINE_VERSION = "1.1.0"
RUNNER_NAME = "audit-engine runner"


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Impact(str, Enum):
    CRITICAL = "critical"
    SERIOUS = "serious"
    MODERATE = "moderate"
    MINOR = "minor"


class ResultType(str, Enum):
    VIOLATIONS = "violations"
    PASSES = "passes"
    INCOMPLETE = "incomplete"
    INAPPLICABLE = "inapplicable"


ALL_RESULT_TYPES = (
    ResultType.VIOLATIONS,
    ResultType.PASSES,
    ResultType.INCOMPLETE,
    ResultType.INAPPLICABLE,
)


class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    RULE_ERROR = "rule_error"
    ELEMENT_ERROR = "element_error"
    ELEMENT_LIMIT = "element_limit"
    SELECTOR_ERROR = "selector_error"


class Outcome(WireModel):
    """What a rule predicate says about one element.

    Extra keys returned by a predicate are kept and reported alongside the
    known fields.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    passed: Optional[bool] = None
    incomplete: Optional[bool] = None
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class NodeResult(Outcome):
    html_snippet: str
    path: str


class RuleReport(WireModel):
    id: str
    description: str = ""
    help: str = ""
    help_url: str = ""
    impact: Optional[Impact] = None
    tags: List[str] = Field(default_factory=list)
    explanation: Optional[str] = None
    nodes: List[NodeResult] = Field(default_factory=list)


class ErrorRecord(WireModel):
    kind: ErrorKind
    rule_id: Optional[str] = None
    message: str


class TestEngine(WireModel):
    name: str = ENGINE_NAME
    version: str = ENGINE_VERSION


class TestEnvironment(WireModel):
    user_agent: str
    window_width: Optional[int] = None
    window_height: Optional[int] = None


class TestRunner(WireModel):
    name: str = RUNNER_NAME


class Report(WireModel):
    violations: Optional[List[RuleReport]] = None
    passes: Optional[List[RuleReport]] = None
    incomplete: Optional[List[RuleReport]] = None
    inapplicable: Optional[List[RuleReport]] = None

    timestamp: str
    url: str = ""
    test_engine: TestEngine = Field(default_factory=TestEngine)
    test_environment: TestEnvironment
    test_runner: TestRunner = Field(default_factory=TestRunner)
    tool_options: Dict[str, Any] = Field(default_factory=dict)
    time: float
    errors: Optional[List[ErrorRecord]] = None

    def bucket(self, result_type: ResultType) -> List[RuleReport]:
        return getattr(self, result_type.value) or []

    def rule_ids(self, result_type: ResultType) -> List[str]:
        return [r.id for r in self.bucket(result_type)]

    def to_wire(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        # Window size is part of the contract even when unknown.
        data["testEnvironment"] = self.test_environment.model_dump(mode="json", by_alias=True)
        return data
