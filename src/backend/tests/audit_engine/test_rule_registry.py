import pytest

from common.audit_engine import EngineOptions, Impact, RuleRegistry, ValidationError
from common.audit_engine import registry as registry_module


def _passes(element, options):
    return {"passed": True}


def test_register_rule_requires_id(make_rule):
    reg = RuleRegistry()
    with pytest.raises(ValidationError):
        reg.register_rule(make_rule("", "img", _passes))


def test_register_rule_requires_callable_evaluate(make_rule):
    reg = RuleRegistry()
    rule = make_rule("no-evaluate", "img", _passes)
    rule.evaluate = None
    with pytest.raises(ValidationError):
        reg.register_rule(rule)


def test_reregistration_overwrites_without_growing(make_rule):
    reg = RuleRegistry()
    first = make_rule("img-alt", "img", _passes)
    second = make_rule("img-alt", "img[src]", _passes)
    reg.register_rule(first)
    reg.register_rule(second)
    assert len(reg) == 1
    assert reg.get("img-alt") is second


def test_ruleset_is_stored_verbatim_without_existence_check():
    reg = RuleRegistry()
    reg.register_ruleset("custom", ["rule-1", "rule-2", "rule-1"])
    assert reg.ruleset("custom") == ("rule-1", "rule-2", "rule-1")
    assert "rule-1" not in reg


def test_resolve_without_run_only_returns_every_rule(make_rule):
    reg = RuleRegistry()
    for rule_id in ("a", "b", "c"):
        reg.register_rule(make_rule(rule_id, "p", _passes))
    assert reg.resolve_rule_ids(EngineOptions()) == ["a", "b", "c"]


def test_resolve_unions_rulesets_and_ignores_unknown_ones():
    reg = RuleRegistry()
    reg.register_ruleset("A", ["x", "y"])
    reg.register_ruleset("B", ["y", "z", "x"])
    ids = reg.resolve_rule_ids(EngineOptions(run_only=["A", "missing", "B"]))
    assert sorted(ids) == ["x", "y", "z"]
    assert len(ids) == len(set(ids))


def test_resolve_accepts_a_single_ruleset_name():
    reg = RuleRegistry()
    reg.register_ruleset("wcag22a", ["img-alt"])
    assert reg.resolve_rule_ids(EngineOptions(run_only="wcag22a")) == ["img-alt"]


def test_lookup_by_tag_and_impact(make_rule):
    reg = RuleRegistry()
    reg.register_rule(make_rule("img-alt", "img", _passes, tags={"wcag22a"}, impact=Impact.CRITICAL))
    reg.register_rule(make_rule("focus", "a", _passes, tags={"wcag22aa"}, impact=Impact.SERIOUS))
    reg.register_rule(make_rule("lang", "html", _passes, tags={"wcag22a", "best-practice"}, impact=Impact.SERIOUS))

    assert [r.rule_id for r in reg.by_tag("wcag22a")] == ["img-alt", "lang"]
    assert [r.rule_id for r in reg.by_impact(Impact.SERIOUS)] == ["focus", "lang"]

    ids = reg.register_tag_ruleset("wcag22aa", "wcag22a", "wcag22aa")
    assert ids == ("img-alt", "focus", "lang")
    assert reg.ruleset("wcag22aa") == ids


def test_copy_is_independent(make_rule):
    reg = RuleRegistry()
    reg.register_rule(make_rule("a", "p", _passes))
    clone = reg.copy()
    clone.register_rule(make_rule("b", "p", _passes))
    clone.register_ruleset("set", ["a", "b"])
    assert "b" not in reg
    assert reg.ruleset("set") is None


def test_register_rule_decorator_adds_to_default_registry(monkeypatch):
    fresh = RuleRegistry()
    monkeypatch.setattr(registry_module, "registry", fresh)

    @registry_module.register_rule
    class HtmlHasLang(registry_module.Rule):
        rule_id = "html-has-lang"
        target_selector = "html"

        def evaluate(self, element, options):
            return {"passed": bool(element.get("lang"))}

    assert "html-has-lang" in fresh
    assert isinstance(fresh.get("html-has-lang"), HtmlHasLang)
