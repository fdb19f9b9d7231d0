import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

import pytest

from adapters.html.document import parse_html
from common.audit_engine import AuditEngine, Impact, Rule
from common.audit_engine.errors import ErrorLog


class PredicateRule(Rule):
    """Rule wrapping a plain callable, for tests only."""

    def __init__(self, rule_id, selector, predicate, *, tags=(), impact=Impact.SERIOUS):
        self.rule_id = rule_id
        self.target_selector = selector
        self.tags = frozenset(tags)
        self.impact = impact
        self.description = f"{rule_id} description"
        self.help = f"{rule_id} help"
        self.help_url = f"https://example.test/rules/{rule_id}"
        self._predicate = predicate
        self.calls = 0

    def evaluate(self, element, options):
        self.calls += 1
        return self._predicate(element, options)


class AsyncPredicateRule(PredicateRule):
    async def evaluate(self, element, options):
        self.calls += 1
        return await self._predicate(element, options)


@pytest.fixture
def make_document():
    def _make(markup: str, *, base_url=None):
        return parse_html(markup, base_url=base_url)

    return _make


@pytest.fixture
def make_rule():
    def _make(rule_id, selector, predicate, **kwargs):
        return PredicateRule(rule_id, selector, predicate, **kwargs)

    return _make


@pytest.fixture
def make_async_rule():
    def _make(rule_id, selector, predicate, **kwargs):
        return AsyncPredicateRule(rule_id, selector, predicate, **kwargs)

    return _make


@pytest.fixture
def make_engine():
    def _make(*, rules=(), rulesets=None, options=None) -> AuditEngine:
        engine = AuditEngine(options)
        for rule in rules:
            engine.register_rule(rule)
        for name, ids in (rulesets or {}).items():
            engine.register_ruleset(name, ids)
        return engine

    return _make


@pytest.fixture
def error_log() -> ErrorLog:
    return ErrorLog()

