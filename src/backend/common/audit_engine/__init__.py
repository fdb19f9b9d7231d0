"""Concurrent rule engine for auditing HTML documents.

This package only contains the engine:
- Rules are registered objects with a selector and a predicate.
- Documents arrive already parsed (lxml); nothing here fetches or renders.
"""

from .cancellation import CancelToken
from .config import EngineOptions, options_from_env
from .context import DocumentTarget, ElementTarget, PageTarget, RunContext, RunTarget, resolve_context
from .errors import (
    AuditEngineError,
    ContextResolutionError,
    DeadlineExceeded,
    ElementEvaluationError,
    ElementLimitExceeded,
    GlobalTimeoutError,
    RuleExecutionError,
    RuleTimeoutError,
    SelectorError,
    ValidationError,
)
from .models import (
    ErrorKind,
    ErrorRecord,
    Impact,
    NodeResult,
    Outcome,
    Report,
    ResultType,
    RuleReport,
)
from .registry import RuleRegistry, register_rule
from .rule import Rule
from .runner import AuditEngine, create_engine
