from __future__ import annotations

import argparse
import importlib
import json
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from .models import Impact
from .registry import RuleRegistry, registry


class RuleCatalogEntry(BaseModel):
    rule_id: str
    description: str = ""
    help: str = ""
    help_url: str = ""
    impact: Optional[Impact] = None
    tags: List[str] = Field(default_factory=list)
    selector: str = ""

    module: str
    class_name: str

    rulesets: List[str] = Field(default_factory=list)


def build_catalog(source: Optional[RuleRegistry] = None) -> List[RuleCatalogEntry]:
    source = source if source is not None else registry
    membership: Dict[str, List[str]] = {}
    for name, rule_ids in source.rulesets().items():
        for rule_id in rule_ids:
            membership.setdefault(rule_id, []).append(name)

    entries: List[RuleCatalogEntry] = []
    for rule in source.rules():
        rule_cls = type(rule)
        entries.append(
            RuleCatalogEntry(
                rule_id=rule.rule_id,
                description=rule.description,
                help=rule.help,
                help_url=rule.help_url,
                impact=rule.impact,
                tags=sorted(rule.tags),
                selector=rule.target_selector or "",
                module=rule_cls.__module__,
                class_name=rule_cls.__name__,
                rulesets=sorted(membership.get(rule.rule_id, [])),
            )
        )

    entries.sort(key=lambda e: e.rule_id)
    return entries


def load_rule_modules(module_names: Iterable[str]) -> List[str]:
    """Import rule packs so their `@register_rule` classes land in the default registry."""
    loaded: List[str] = []
    for name in module_names:
        name = name.strip()
        if not name:
            continue
        importlib.import_module(name)
        loaded.append(name)
    return loaded


def render_catalog(entries: List[RuleCatalogEntry], fmt: str = "json") -> str:
    rows = [entry.model_dump(mode="json") for entry in entries]
    if fmt == "json":
        return json.dumps(rows, indent=2, sort_keys=True)
    if fmt != "yaml":
        raise ValueError(f"Unsupported catalog format: {fmt}")
    try:
        import yaml  # type: ignore
    except ModuleNotFoundError as exc:
        raise SystemExit("YAML output needs PyYAML; install the `yaml` extra.") from exc
    return yaml.safe_dump(rows, sort_keys=True)


def main(argv: Optional[List[str]] = None, *, source: Optional[RuleRegistry] = None) -> None:
    parser = argparse.ArgumentParser(description="List the rules an engine would run.")
    parser.add_argument("--module", action="append", default=[], help="Rule pack to import first (repeatable).")
    parser.add_argument("--format", choices=("json", "yaml"), default="json")
    args = parser.parse_args(argv)

    load_rule_modules(args.module)
    print(render_catalog(build_catalog(source), args.format))


if __name__ == "__main__":
    main()
