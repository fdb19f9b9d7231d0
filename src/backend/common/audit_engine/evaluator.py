from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from .cancellation import CancelToken
from .config import EngineOptions
from .context import RunContext
from .dom import build_path, outer_html
from .errors import ElementEvaluationError, ElementLimitExceeded, ErrorLog
from .locator import locate
from .models import NodeResult, Outcome, ResultType, RuleReport
from .report import classify
from .rule import PredicateResult, Rule

logger = logging.getLogger(__name__)


class RuleState(str, Enum):
    INAPPLICABLE = "inapplicable"
    CLASSIFIED = "classified"
    DROPPED = "dropped"


@dataclass(frozen=True)
class RuleEvaluation:
    state: RuleState
    report: RuleReport
    bucket: Optional[ResultType] = None


async def evaluate_rule(
    rule: Rule,
    ctx: RunContext,
    options: EngineOptions,
    *,
    errors: ErrorLog,
    token: Optional[CancelToken] = None,
) -> RuleEvaluation:
    """Run one rule over the elements its selector picks out.

    A rule whose selector matches nothing is inapplicable. A rule whose
    elements all produce no outcome is dropped and lands in no bucket.
    Raises `DeadlineExceeded` when `token` expires mid-evaluation.
    """
    elements = locate(
        rule.target_selector,
        ctx.context_root,
        ctx.document_root,
        rule_id=rule.rule_id,
        errors=errors,
        token=token,
    )
    if not elements:
        return RuleEvaluation(RuleState.INAPPLICABLE, rule.metadata_report(), ResultType.INAPPLICABLE)

    limit = options.max_elements_per_rule
    checked = elements[:limit]
    if len(elements) > limit:
        errors.capture(
            ElementLimitExceeded(
                f"Checking only first {limit} of {len(elements)} elements",
                rule_id=rule.rule_id,
            )
        )

    nodes: List[NodeResult] = []
    for element in checked:
        if token is not None:
            token.raise_if_expired()
        try:
            node = await _node_result(rule, element, options)
        except Exception as exc:
            errors.capture(ElementEvaluationError(_describe(exc), rule_id=rule.rule_id))
            node = None
        # Let other rules run between elements.
        await asyncio.sleep(0)

        if node is not None:
            nodes.append(node)

    if not nodes:
        # Elements were found but every predicate call returned no outcome.
        logger.debug("Rule %s produced no node results; dropping it from the report", rule.rule_id)
        return RuleEvaluation(RuleState.DROPPED, rule.metadata_report())

    bucket = classify(nodes)
    logger.debug("Rule %s classified as %s (%d node(s))", rule.rule_id, bucket.value, len(nodes))
    return RuleEvaluation(RuleState.CLASSIFIED, rule.metadata_report(nodes), bucket)


async def _node_result(rule: Rule, element, options: EngineOptions) -> Optional[NodeResult]:
    outcome = await _call_predicate(rule, element, options)
    if outcome is None:
        return None
    return NodeResult.model_validate(
        {
            "html_snippet": outer_html(element),
            "path": build_path(element),
            **outcome.model_dump(exclude_none=True),
        }
    )


async def _call_predicate(rule: Rule, element, options: EngineOptions) -> Optional[Outcome]:
    result: PredicateResult = rule.evaluate(element, options)
    if inspect.isawaitable(result):
        result = await result
    if result is None or isinstance(result, Outcome):
        return result
    try:
        return Outcome.model_validate(result)
    except PydanticValidationError as exc:
        raise TypeError(f"Rule {rule.rule_id} returned an invalid outcome: {exc.error_count()} error(s)") from exc


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__
