from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Dict, FrozenSet, List, Optional, Union

from lxml.html import HtmlElement

from .config import EngineOptions
from .models import Impact, NodeResult, Outcome, RuleReport

PredicateResult = Union[Outcome, Dict[str, Any], None]


class Rule(ABC):
    """A selector-scoped check.

    Subclasses set the metadata as class attributes and implement `evaluate`.
    `evaluate` may be a plain method or a coroutine function; awaiting inside it
    lets other rules make progress while this one waits.
    """

    rule_id: str
    target_selector: str = ""
    tags: FrozenSet[str] = frozenset()
    impact: Optional[Impact] = None
    description: str = ""
    help: str = ""
    help_url: str = ""
    explanation: Optional[str] = None

    @abstractmethod
    def evaluate(
        self, element: HtmlElement, options: EngineOptions
    ) -> Union[PredicateResult, Awaitable[PredicateResult]]:  # pragma: no cover
        raise NotImplementedError

    def metadata_report(self, nodes: Optional[List[NodeResult]] = None) -> RuleReport:
        return RuleReport(
            id=self.rule_id,
            description=self.description,
            help=self.help,
            help_url=self.help_url,
            impact=self.impact,
            tags=sorted(self.tags),
            explanation=self.explanation,
            nodes=list(nodes or []),
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {getattr(self, 'rule_id', '?')!r}>"
