"""
Tests for dependency rule parsing, defaults and pattern compilation.
"""

import json
import logging

import pytest

from timebalance.coverage.rules import (
    DependencyConfig,
    DependencyConfigError,
    OptOutConfig,
    load_dependency_config,
    normalize_dependency_config,
)


def rule_doc(**overrides) -> dict:
    doc = {
        "id": "babysitter",
        "name": "Babysitter for date night",
        "trigger": {"sourceCalendars": ["Family"], "summaryPatterns": ["date night"]},
        "requirement": {
            "coverageSummaryPatterns": ["babysit"],
            "coverageSearchCalendars": ["Family"],
            "createTarget": {"account": "personal", "calendar": "Family"},
            "startOffsetMinutes": -60,
            "endOffsetMinutes": 60,
        },
    }
    doc.update(overrides)
    return doc


class TestNormalize:
    def test_compiles_rule(self):
        config = normalize_dependency_config({"rules": [rule_doc()]})
        rule = config.get_rule("babysitter")
        assert rule is not None
        assert rule.name == "Babysitter for date night"
        assert rule.source_calendars == ("Family",)
        assert rule.start_offset_minutes == -60
        assert rule.end_offset_minutes == 60
        assert rule.create_target.account == "personal"
        assert rule.summary_patterns[0].search("DATE NIGHT downtown")

    def test_defaults(self):
        rule = normalize_dependency_config({"rules": [{"id": "bare"}]}).rules[0]
        assert rule.name == "bare"
        assert rule.enabled is True
        assert rule.action_mode == "propose"
        assert rule.orphan_policy == "propose-delete"
        assert rule.min_coverage_percent == 100
        assert rule.start_offset_minutes == 0
        assert rule.all_day_summary_patterns is None
        assert rule.timed_summary_patterns is None

    def test_config_defaults_apply_to_rules(self):
        config = normalize_dependency_config(
            {"defaults": {"actionMode": "create", "orphanPolicy": "keep"}, "rules": [{"id": "a"}]}
        )
        assert config.default_action_mode == "create"
        assert config.rules[0].action_mode == "create"
        assert config.rules[0].orphan_policy == "keep"

    def test_unknown_action_mode_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = normalize_dependency_config({"rules": [rule_doc(actionMode="delete")]})
        assert config.rules[0].action_mode == "propose"
        assert "actionMode" in caplog.text

    def test_non_mapping_is_empty(self):
        assert normalize_dependency_config(["not", "a", "mapping"]) == DependencyConfig()
        assert normalize_dependency_config(None) == DependencyConfig()

    def test_malformed_rule_skipped(self, caplog):
        raw = {"rules": [{"id": ""}, "oops", {"id": "ok", "requirement": {"minCoveragePercent": 150}}, rule_doc()]}
        with caplog.at_level(logging.WARNING):
            config = normalize_dependency_config(raw)
        assert [r.id for r in config.rules] == ["babysitter"]
        assert "Skipping malformed dependency rule" in caplog.text

    def test_duplicate_rule_id_skipped(self):
        config = normalize_dependency_config({"rules": [rule_doc(), rule_doc(name="second")]})
        assert len(config.rules) == 1
        assert config.rules[0].name == "Babysitter for date night"

    def test_enabled_rules(self):
        config = normalize_dependency_config({"rules": [rule_doc(), {"id": "off", "enabled": False}]})
        assert [r.id for r in config.enabled_rules] == ["babysitter"]
        assert config.get_rule("missing") is None


class TestPatterns:
    def test_invalid_regex_names_rule_and_field(self):
        doc = rule_doc(trigger={"sourceCalendars": ["Family"], "summaryPatterns": ["ok", "([unclosed"]})
        with pytest.raises(DependencyConfigError) as excinfo:
            normalize_dependency_config({"rules": [doc]})
        assert excinfo.value.rule_id == "babysitter"
        assert excinfo.value.field == "rules[babysitter].trigger.summaryPatterns[1]"
        assert "rules[babysitter].trigger.summaryPatterns[1]" in str(excinfo.value)

    def test_invalid_regex_in_disabled_rule_still_fatal(self):
        doc = rule_doc(enabled=False)
        doc["requirement"]["coverageSummaryPatterns"] = ["*bad"]
        with pytest.raises(DependencyConfigError) as excinfo:
            normalize_dependency_config({"rules": [doc]})
        assert excinfo.value.field == "rules[babysitter].requirement.coverageSummaryPatterns[0]"

    def test_all_day_and_timed_sets(self):
        trigger = {
            "sourceCalendars": ["Family"],
            "summaryPatterns": ["trip"],
            "allDaySummaryPatterns": ["vacation"],
            "timedSummaryPatterns": [],
        }
        rule = normalize_dependency_config({"rules": [rule_doc(trigger=trigger)]}).rules[0]
        assert [p.pattern for p in rule.trigger_patterns_for(True)] == ["vacation"]
        # an empty specific list falls back to the general set
        assert [p.pattern for p in rule.trigger_patterns_for(False)] == ["trip"]

    def test_invalid_regex_fatal_in_otherwise_malformed_rule(self):
        doc = rule_doc(trigger={"sourceCalendars": ["Family"], "summaryPatterns": ["date (night"]})
        doc["requirement"]["minCoveragePercent"] = 150
        with pytest.raises(DependencyConfigError) as excinfo:
            normalize_dependency_config({"rules": [doc]})
        assert excinfo.value.rule_id == "babysitter"
        assert excinfo.value.field == "rules[babysitter].trigger.summaryPatterns[0]"

    def test_invalid_regex_as_bare_string_fatal(self):
        doc = rule_doc(trigger={"sourceCalendars": ["Family"], "summaryPatterns": "("})
        with pytest.raises(DependencyConfigError) as excinfo:
            normalize_dependency_config({"rules": [doc]})
        assert excinfo.value.field == "rules[babysitter].trigger.summaryPatterns[0]"

    def test_invalid_regex_without_rule_id_uses_index(self):
        raw = {"rules": [rule_doc(), {"requirement": {"coverageSummaryPatterns": ["[x"]}}]}
        with pytest.raises(DependencyConfigError) as excinfo:
            normalize_dependency_config(raw)
        assert excinfo.value.field == "rules[#1].requirement.coverageSummaryPatterns[0]"


class TestOptOut:
    def test_defaults(self):
        opt_out = OptOutConfig()
        assert opt_out.global_tokens == ("no coverage needed",)
        assert opt_out.precedence == ("description", "title")
        assert opt_out.rule_token("babysitter") == "no-coverage:babysitter"

    def test_custom(self):
        config = normalize_dependency_config(
            {
                "optOut": {
                    "globalTokens": ["skip-coverage", ""],
                    "ruleTokenTemplate": "skip:{ruleId}",
                    "precedence": ["title", "description"],
                }
            }
        )
        assert config.opt_out.global_tokens == ("skip-coverage",)
        assert config.opt_out.rule_token("x") == "skip:x"
        assert config.opt_out.precedence == ("title", "description")

    def test_invalid_section_uses_defaults(self):
        config = normalize_dependency_config({"optOut": {"precedence": ["subject"]}})
        assert config.opt_out == OptOutConfig()


class TestLoad:
    def test_missing_file(self, tmp_path):
        assert load_dependency_config(tmp_path / "missing.json") == DependencyConfig()

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "dependencies.json"
        path.write_text("{ not: [valid")
        assert load_dependency_config(path) == DependencyConfig()

    def test_loads_json(self, tmp_path):
        path = tmp_path / "dependencies.json"
        path.write_text(json.dumps({"rules": [rule_doc()]}))
        assert [r.id for r in load_dependency_config(path).rules] == ["babysitter"]

    def test_default_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TIMEBALANCE_HOME", str(tmp_path))
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "dependencies.json").write_text(json.dumps({"rules": [rule_doc()]}))
        assert len(load_dependency_config().rules) == 1

    def test_invalid_regex_in_file_raises(self, tmp_path):
        path = tmp_path / "dependencies.json"
        path.write_text(json.dumps({"rules": [rule_doc(trigger={"summaryPatterns": ["("]})]}))
        with pytest.raises(DependencyConfigError):
            load_dependency_config(path)

    def test_loads_tab_indented_json(self, tmp_path):
        path = tmp_path / "dependencies.json"
        path.write_text(json.dumps({"rules": [rule_doc()]}, indent="\t"))
        assert [r.id for r in load_dependency_config(path).rules] == ["babysitter"]

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "dependencies.yaml"
        path.write_text(
            "rules:\n"
            "  - id: babysitter\n"
            "    trigger:\n"
            "      sourceCalendars: [Family]\n"
            "      summaryPatterns: [date night]\n"
        )
        rule = load_dependency_config(path).rules[0]
        assert rule.id == "babysitter"
        assert rule.source_calendars == ("Family",)
