from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from .cancellation import CancelToken
from .config import EngineOptions, coerce_options
from .context import RunContext, resolve_context
from .errors import DeadlineExceeded, ErrorLog, GlobalTimeoutError, RuleExecutionError, RuleTimeoutError
from .evaluator import evaluate_rule
from .models import ErrorRecord, Report, ResultType
from .registry import RuleRegistry
from .registry import registry as default_registry
from .report import ResultBuckets, assemble_report
from .rule import Rule

logger = logging.getLogger(__name__)

OptionsLike = Union[EngineOptions, Dict[str, Any], None]


class AuditEngine:
    def __init__(self, options: OptionsLike = None, *, registry: Optional[RuleRegistry] = None):
        self.options = coerce_options(options)
        self.registry = registry if registry is not None else RuleRegistry()
        # Errors of the last run to finish, kept even when silent. Overlapping runs
        # on one engine overwrite each other here; use the report for per-run errors.
        self.last_errors: List[ErrorRecord] = []

    def register_rule(self, rule: Rule) -> Rule:
        return self.registry.register_rule(rule)

    def register_ruleset(self, name: str, rule_ids: Iterable[str]) -> None:
        self.registry.register_ruleset(name, rule_ids)

    async def run(self, target: Any, options: OptionsLike = None) -> Report:
        ctx = resolve_context(target)
        opts = self.options.merged(options)

        errors = ErrorLog()
        buckets = ResultBuckets()
        started = time.perf_counter()
        run_token = CancelToken(opts.global_timeout_s)

        rules: List[Rule] = []
        for rule_id in self.registry.resolve_rule_ids(opts):
            rule = self.registry.get(rule_id)
            if rule is None:
                logger.debug("Ruleset references unregistered rule %s; skipping", rule_id)
                continue
            rules.append(rule)

        logger.info("Running %d rule(s) against %s", len(rules), ctx.url or "<document>")

        abandoned: Set[str] = set()
        tasks = [
            asyncio.create_task(
                self._run_rule(rule, ctx, opts, errors=errors, buckets=buckets, run_token=run_token, abandoned=abandoned),
                name=f"audit-rule:{rule.rule_id}",
            )
            for rule in rules
        ]
        if tasks:
            _, pending = await asyncio.wait(tasks, timeout=opts.global_timeout_s)
            if pending or abandoned:
                buckets.seal()
                run_token.cancel("global timeout")
                unfinished = len(pending) + len(abandoned)
                errors.capture(
                    GlobalTimeoutError(
                        f"Run exceeded {opts.global_timeout_ms} ms; {unfinished} rule(s) did not finish"
                    )
                )
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        self.last_errors = errors.records()
        report = assemble_report(buckets=buckets, ctx=ctx, options=opts, errors=errors, elapsed_ms=elapsed_ms)
        logger.info(
            "Finished in %.1f ms: %d violation(s), %d pass(es), %d incomplete, %d inapplicable, %d error(s)",
            elapsed_ms,
            len(buckets.get(ResultType.VIOLATIONS)),
            len(buckets.get(ResultType.PASSES)),
            len(buckets.get(ResultType.INCOMPLETE)),
            len(buckets.get(ResultType.INAPPLICABLE)),
            len(errors),
        )
        return report

    def run_sync(self, target: Any, options: OptionsLike = None) -> Report:
        return asyncio.run(self.run(target, options))

    async def _run_rule(
        self,
        rule: Rule,
        ctx: RunContext,
        opts: EngineOptions,
        *,
        errors: ErrorLog,
        buckets: ResultBuckets,
        run_token: CancelToken,
        abandoned: Set[str],
    ) -> None:
        rule_token = run_token.child(opts.per_rule_timeout_s)
        try:
            evaluation = await asyncio.wait_for(
                evaluate_rule(rule, ctx, opts, errors=errors, token=rule_token),
                timeout=opts.per_rule_timeout_s,
            )
        except (asyncio.TimeoutError, DeadlineExceeded):
            rule_token.cancel("rule timeout")
            if run_token.expired:
                # The run deadline passed; the scheduler reports it once.
                abandoned.add(rule.rule_id)
                return
            errors.capture(
                RuleTimeoutError(f"Rule {rule.rule_id} timed out after {opts.per_rule_timeout_ms} ms", rule_id=rule.rule_id)
            )
            buckets.commit(ResultType.INCOMPLETE, rule.metadata_report())
            return
        except Exception as exc:
            errors.capture(RuleExecutionError(str(exc) or type(exc).__name__, rule_id=rule.rule_id))
            buckets.commit(ResultType.INCOMPLETE, rule.metadata_report())
            return

        if evaluation.bucket is not None:
            buckets.commit(evaluation.bucket, evaluation.report)


def create_engine(
    options: OptionsLike = None,
    *,
    rules: Iterable[Rule] = (),
    rulesets: Optional[Dict[str, Iterable[str]]] = None,
    registry: Optional[RuleRegistry] = None,
) -> AuditEngine:
    """Build an engine on a private copy of the default registry (or `registry`)."""
    source = registry if registry is not None else default_registry
    engine = AuditEngine(options, registry=source.copy())
    for rule in rules:
        engine.register_rule(rule)
    for name, rule_ids in (rulesets or {}).items():
        engine.register_ruleset(name, rule_ids)
    return engine
