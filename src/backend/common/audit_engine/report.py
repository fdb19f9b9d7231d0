from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Sequence

from .config import EngineOptions
from .context import RunContext
from .errors import ErrorLog
from .models import ALL_RESULT_TYPES, NodeResult, Report, ResultType, RuleReport

logger = logging.getLogger(__name__)


def classify(nodes: Sequence[NodeResult]) -> ResultType:
    if any(node.incomplete is True for node in nodes):
        return ResultType.INCOMPLETE
    if all(node.passed is True for node in nodes):
        return ResultType.PASSES
    return ResultType.VIOLATIONS


class ResultBuckets:
    # Commits after seal() are dropped.

    def __init__(self):
        self._buckets: Dict[ResultType, List[RuleReport]] = {t: [] for t in ALL_RESULT_TYPES}
        self._sealed = False

    def commit(self, result_type: ResultType, report: RuleReport) -> bool:
        if self._sealed:
            logger.debug("Ignoring late result for %s", report.id)
            return False
        self._buckets[result_type].append(report)
        return True

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def get(self, result_type: ResultType) -> List[RuleReport]:
        return list(self._buckets[result_type])

    def project(self, result_types: Iterable[ResultType]) -> Dict[str, List[RuleReport]]:
        return {t.value: list(self._buckets[t]) for t in ALL_RESULT_TYPES if t in set(result_types)}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def assemble_report(
    *,
    buckets: ResultBuckets,
    ctx: RunContext,
    options: EngineOptions,
    errors: ErrorLog,
    elapsed_ms: float,
) -> Report:
    projected = buckets.project(options.wanted_result_types())
    return Report(
        **projected,
        timestamp=utc_timestamp(),
        url=ctx.url,
        test_environment=ctx.environment,
        tool_options=options.to_wire(),
        time=round(elapsed_ms, 3),
        errors=errors.records() if len(errors) and not options.silent else None,
    )
