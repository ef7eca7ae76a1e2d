"""Tests for single-stage field extraction and renaming."""

from __future__ import annotations

import copy

import pytest

from apiwire.models import TransformConfig
from apiwire.transform import ResponseTransformer
from apiwire.transform.transformer import (
    delete_nested_value,
    extract_fields,
    get_nested_value,
    rename_fields,
    set_nested_value,
)


@pytest.fixture
def user() -> dict:
    return {
        "login": "octocat",
        "id": 1,
        "profile": {"name": "The Octocat", "location": "SF", "links": {"blog": "b"}},
        "repos": [
            {"name": "hello", "stars": 10, "private": False},
            {"name": "world", "stars": 3, "private": True},
        ],
    }


class TestNestedValues:
    def test_get(self, user: dict) -> None:
        assert get_nested_value(user, "profile.links.blog") == "b"
        assert get_nested_value(user, "repos[1].name") == "world"

    def test_set_creates_parents(self) -> None:
        target: dict = {}
        set_nested_value(target, "a.b.c", 1)
        assert target == {"a": {"b": {"c": 1}}}

    def test_delete_leaves_parents_by_default(self) -> None:
        target = {"a": {"b": {"c": 1}}}
        delete_nested_value(target, "a.b.c")
        assert target == {"a": {"b": {}}}

    def test_delete_with_prune_drops_emptied_parents(self) -> None:
        target = {"a": {"b": {"c": 1}}, "d": 2}
        delete_nested_value(target, "a.b.c", prune=True)
        assert target == {"d": 2}

    def test_prune_stops_at_non_empty_parent(self) -> None:
        target = {"a": {"b": {"c": 1}, "e": 3}}
        delete_nested_value(target, "a.b.c", prune=True)
        assert target == {"a": {"e": 3}}


class TestExtractFields:
    def test_top_level_and_nested(self, user: dict) -> None:
        result = extract_fields(user, ["login", "profile.name"])
        assert result == {"login": "octocat", "profile": {"name": "The Octocat"}}

    def test_missing_fields_omitted(self, user: dict) -> None:
        assert extract_fields(user, ["login", "nope", "profile.nope"]) == {"login": "octocat"}

    def test_indexed_segment_kept_literally(self, user: dict) -> None:
        assert extract_fields(user, ["repos[0].name"]) == {"repos[0]": {"name": "hello"}}

    def test_out_of_range_index_omitted(self, user: dict) -> None:
        assert extract_fields(user, ["repos[5].name"]) == {}

    def test_projections_merge_per_element(self, user: dict) -> None:
        result = extract_fields(user, ["repos[*].name", "repos[*].stars"])
        assert result == {"repos": [{"name": "hello", "stars": 10}, {"name": "world", "stars": 3}]}

    def test_whole_array_projection(self, user: dict) -> None:
        assert extract_fields(user, ["repos[*]"]) == {"repos": user["repos"]}

    def test_projection_on_non_array_omitted(self, user: dict) -> None:
        assert extract_fields(user, ["profile[*].name"]) == {}

    def test_top_level_array_with_item_prefix(self, user: dict) -> None:
        assert extract_fields(user["repos"], ["[*].name"]) == [{"name": "hello"}, {"name": "world"}]

    def test_top_level_array_plain_fields(self, user: dict) -> None:
        assert extract_fields(user["repos"], ["stars"]) == [{"stars": 10}, {"stars": 3}]

    def test_scalar_passes_through(self) -> None:
        assert extract_fields("plain text", ["a"]) == "plain text"

    def test_input_not_mutated(self, user: dict) -> None:
        before = copy.deepcopy(user)
        extract_fields(user, ["repos[*].name", "profile.name"])
        assert user == before


class TestRenameFields:
    def test_simple(self) -> None:
        assert rename_fields({"login": "o", "id": 1}, {"login": "username"}) == {
            "id": 1,
            "username": "o",
        }

    def test_to_nested_path(self) -> None:
        result = rename_fields({"profile": {"name": "n"}}, {"profile.name": "display.name"})
        assert result == {"display": {"name": "n"}}

    def test_moves_nested_value_to_top_level(self) -> None:
        assert rename_fields({"a": {"b": 1}}, {"a.b": "x"}) == {"x": 1}

    def test_keeps_parent_with_remaining_keys(self) -> None:
        result = rename_fields({"a": {"b": 1, "c": 2}}, {"a.b": "x"})
        assert result == {"a": {"c": 2}, "x": 1}

    def test_keeps_empty_dicts_it_did_not_empty(self) -> None:
        result = rename_fields({"meta": {}, "a": {"b": 1}}, {"a.b": "x"})
        assert result == {"meta": {}, "x": 1}

    def test_rename_within_same_parent(self) -> None:
        assert rename_fields({"a": {"b": 1}}, {"a.b": "a.c"}) == {"a": {"c": 1}}

    def test_missing_source_skipped(self) -> None:
        assert rename_fields({"a": 1}, {"b": "c"}) == {"a": 1}

    def test_array_items(self) -> None:
        data = {"repos": [{"name": "a"}, {"name": "b"}]}
        result = rename_fields(data, {"repos[*].name": "repos[*].title"})
        assert result == {"repos": [{"title": "a"}, {"title": "b"}]}

    def test_top_level_array(self) -> None:
        result = rename_fields([{"id": 1}, {"id": 2}], {"[*].id": "[*].key"})
        assert result == [{"key": 1}, {"key": 2}]

    def test_input_not_mutated(self) -> None:
        data = {"login": "o"}
        rename_fields(data, {"login": "username"})
        assert data == {"login": "o"}


class TestResponseTransformer:
    def test_fields_then_rename(self, user: dict) -> None:
        transformer = ResponseTransformer(
            TransformConfig(fields=["login", "repos[*].name"], rename={"login": "user"})
        )
        assert transformer.transform(user) == {
            "repos": [{"name": "hello"}, {"name": "world"}],
            "user": "octocat",
        }

    def test_empty_config_is_identity(self, user: dict) -> None:
        assert ResponseTransformer(TransformConfig()).transform(user) is user

    def test_failure_returns_original(self, user: dict, monkeypatch: pytest.MonkeyPatch) -> None:
        def _boom(data, fields):
            raise RuntimeError("boom")

        monkeypatch.setattr("apiwire.transform.transformer.extract_fields", _boom)
        transformer = ResponseTransformer(TransformConfig(fields=["login"]))
        assert transformer.transform(user) is user
