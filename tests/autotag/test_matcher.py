"""Tests for matcher.py — bare words and match rules."""

import pytest

from autotag.matcher import bare_word, build_rule


class TestBareWord:
    def test_strips_sentinel_and_lowercases(self):
        assert bare_word("#Project") == "project"

    def test_strips_only_one_sentinel(self):
        assert bare_word("##x") == "#x"

    def test_no_sentinel(self):
        assert bare_word("Plain") == "plain"

    def test_custom_sentinel(self):
        assert bare_word("@Alice", sentinel="@") == "alice"


class TestBuildRule:
    def test_rule_fields(self):
        rule = build_rule("#Project")
        assert rule is not None
        assert rule.tag == "#Project"
        assert rule.word == "project"
        assert rule.replacement == "#project"

    @pytest.mark.parametrize("tag", ["#", "", "#   "])
    def test_empty_bare_word_skipped(self, tag: str):
        assert build_rule(tag) is None

    def test_case_insensitive(self):
        rule = build_rule("#project")
        assert rule is not None
        assert rule.apply("Project and PROJECT") == "#project and #project"

    def test_word_boundary(self):
        rule = build_rule("#project")
        assert rule is not None
        text = "projection projects subproject project_x"
        assert rule.apply(text) == text

    def test_not_preceded_by_sentinel(self):
        rule = build_rule("#project")
        assert rule is not None
        assert rule.apply("#project") == "#project"
        assert rule.apply("##project") == "##project"

    def test_punctuation_is_a_boundary(self):
        rule = build_rule("#project")
        assert rule is not None
        assert rule.apply("(project), project.") == "(#project), #project."

    def test_all_occurrences_replaced(self):
        rule = build_rule("#a")
        assert rule is not None
        assert rule.apply("a b a b a") == "#a b #a b #a"


class TestMetacharacters:
    def test_plus_plus(self):
        rule = build_rule("#c++")
        assert rule is not None
        assert rule.apply("I like c++ and C++.") == "I like #c++ and #c++."

    def test_plus_plus_does_not_match_shorter(self):
        rule = build_rule("#c++")
        assert rule is not None
        assert rule.apply("c+ and c") == "c+ and c"

    def test_dot_is_literal(self):
        rule = build_rule("#v1.0")
        assert rule is not None
        assert rule.apply("v1x0 v1.0") == "v1x0 #v1.0"

    def test_regex_groups_are_literal(self):
        rule = build_rule("#a(b)")
        assert rule is not None
        assert rule.apply("ab a(b)") == "ab #a(b)"

    def test_backslash_in_replacement_is_literal(self):
        rule = build_rule("#x\\1")
        assert rule is not None
        assert rule.apply("x\\1") == "#x\\1"

    def test_slash_nested_tag(self):
        rule = build_rule("#project/alpha")
        assert rule is not None
        assert rule.apply("see project/alpha") == "see #project/alpha"
