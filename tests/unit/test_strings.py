"""Tests for display-name helpers."""

from __future__ import annotations

import pytest

from dazzle_admin.strings import format_label, pluralize, to_snake_case


class TestPluralize:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Post", "Posts"),
            ("User", "Users"),
            ("Bus", "Buses"),
            ("Status", "Statuses"),
        ],
    )
    def test_simple_rule(self, name: str, expected: str) -> None:
        assert pluralize(name) == expected

    def test_irregular_plurals_are_not_special_cased(self) -> None:
        assert pluralize("Category") == "Categorys"
        assert pluralize("Person") == "Persons"


class TestFormatLabel:
    @pytest.mark.parametrize(
        ("field_name", "expected"),
        [
            ("email", "Email"),
            ("created_at", "Created At"),
            ("author_id", "Author ID"),
            ("api_url", "API URL"),
            ("IsActive", "Is Active"),
            ("HTMLParser", "HTML Parser"),
        ],
    )
    def test_labels(self, field_name: str, expected: str) -> None:
        assert format_label(field_name) == expected

    def test_id_alone(self) -> None:
        assert format_label("id") == "ID"


class TestToSnakeCase:
    def test_camel_case(self) -> None:
        assert to_snake_case("SampleProduct") == "sample_product"

    def test_single_word(self) -> None:
        assert to_snake_case("User") == "user"

    def test_leading_acronym(self) -> None:
        assert to_snake_case("HTTPRequest") == "http_request"
