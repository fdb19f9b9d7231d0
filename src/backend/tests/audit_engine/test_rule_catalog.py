import json

import pytest

from common.audit_engine import Impact, RuleRegistry
from common.audit_engine import catalog as catalog_module


def _passes(element, options):
    return {"passed": True}


def test_catalog_is_sorted_and_lists_rulesets(make_rule):
    reg = RuleRegistry()
    reg.register_rule(make_rule("region", "body", _passes, tags={"best-practice"}, impact=Impact.MODERATE))
    reg.register_rule(make_rule("img-alt", "img", _passes, tags={"wcag22a", "wcag111"}, impact=Impact.CRITICAL))
    reg.register_ruleset("wcag22a", ["img-alt"])
    reg.register_ruleset("all", ["img-alt", "region"])

    entries = catalog_module.build_catalog(reg)
    assert [e.rule_id for e in entries] == ["img-alt", "region"]
    img = entries[0]
    assert img.rulesets == ["all", "wcag22a"]
    assert img.tags == ["wcag111", "wcag22a"]
    assert img.selector == "img"
    assert img.class_name == "PredicateRule"


def test_catalog_main_prints_json(make_rule, capsys):
    reg = RuleRegistry()
    reg.register_rule(make_rule("img-alt", "img", _passes, impact=Impact.CRITICAL))

    catalog_module.main(["--format", "json"], source=reg)
    payload = json.loads(capsys.readouterr().out)
    assert payload[0]["rule_id"] == "img-alt"
    assert payload[0]["impact"] == "critical"


def test_render_catalog_rejects_unknown_format():
    with pytest.raises(ValueError):
        catalog_module.render_catalog([], "csv")


def test_load_rule_modules_imports_and_skips_blanks():
    assert catalog_module.load_rule_modules(["json", " ", ""]) == ["json"]
