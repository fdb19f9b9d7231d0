from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Type

from .config import EngineOptions
from .errors import ValidationError
from .models import Impact
from .rule import Rule

logger = logging.getLogger(__name__)


class RuleRegistry:
    """Id-keyed rule store plus named rulesets.

    Rulesets may name ids that are not (yet) registered; those are dropped when
    a run resolves its rules, never at registration time.
    """

    def __init__(self):
        self._rules: Dict[str, Rule] = {}
        self._rulesets: Dict[str, Tuple[str, ...]] = {}

    def register_rule(self, rule: Rule) -> Rule:
        rule_id = getattr(rule, "rule_id", None)
        if not rule_id:
            raise ValidationError("Rule must have a rule_id")
        if not callable(getattr(rule, "evaluate", None)):
            raise ValidationError(f"Rule {rule_id} must have an evaluate method")
        if rule_id in self._rules:
            logger.debug("Replacing rule %s", rule_id)
        self._rules[rule_id] = rule
        return rule

    def register_ruleset(self, name: str, rule_ids: Iterable[str]) -> None:
        self._rulesets[name] = tuple(rule_ids)

    def register_tag_ruleset(self, name: str, *tags: str) -> Tuple[str, ...]:
        """Register `name` as every currently registered rule carrying any of `tags`."""
        wanted = set(tags)
        ids = tuple(rule_id for rule_id, rule in self._rules.items() if wanted & set(rule.tags))
        self._rulesets[name] = ids
        return ids

    def resolve_rule_ids(self, options: EngineOptions) -> List[str]:
        if options.run_only is None:
            return list(self._rules)

        resolved: Dict[str, None] = {}
        for name in options.run_only:
            ids = self._rulesets.get(name)
            if ids is None:
                logger.debug("Ignoring unknown ruleset %s", name)
                continue
            for rule_id in ids:
                resolved.setdefault(rule_id, None)
        return list(resolved)

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def ids(self) -> Iterable[str]:
        return self._rules.keys()

    def rules(self) -> List[Rule]:
        return list(self._rules.values())

    def ruleset(self, name: str) -> Optional[Sequence[str]]:
        return self._rulesets.get(name)

    def rulesets(self) -> Dict[str, Tuple[str, ...]]:
        return dict(self._rulesets)

    def by_tag(self, tag: str) -> List[Rule]:
        return [rule for rule in self._rules.values() if tag in rule.tags]

    def by_impact(self, impact: Impact) -> List[Rule]:
        return [rule for rule in self._rules.values() if rule.impact == impact]

    def copy(self) -> "RuleRegistry":
        other = RuleRegistry()
        other._rules = dict(self._rules)
        other._rulesets = dict(self._rulesets)
        return other

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules


registry = RuleRegistry()


def register_rule(rule_cls: Type[Rule]) -> Type[Rule]:
    registry.register_rule(rule_cls())
    return rule_cls
