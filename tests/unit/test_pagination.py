"""
Unit tests for page building: item refinement, cursor construction and
backward page ordering.
"""

import pytest

from dynapage.cursor import encode_next, encode_prev
from dynapage.pagination import (
    PageResult,
    build_pagination_key,
    build_response,
    has_next_page,
    is_first_page,
    refine_item,
    refine_items,
)

EXCLUDE = {"include_fields": False, "fields": "Test,Range"}
KEY_1 = {"ID": 1, "Range": 3}
KEY_2 = {"ID": 2, "Range": 3}


@pytest.mark.unit
class TestRefine:
    item = {"ID": 1, "Range": 3, "Test": "Example"}

    @pytest.mark.parametrize(
        "options",
        [{}, {"include_fields": False}, {"include_fields": True}, {"fields": False}],
    )
    def test_item_unchanged_without_exclusion(self, options):
        assert refine_item(self.item, options) == self.item

    def test_item_drops_excluded_fields(self):
        assert refine_item(self.item, EXCLUDE) == {"ID": 1}

    def test_item_is_not_mutated(self):
        item = dict(self.item)
        refine_item(item, EXCLUDE)
        assert item == self.item

    def test_missing_excluded_field_is_ignored(self):
        assert refine_item({"ID": 1}, EXCLUDE) == {"ID": 1}

    def test_items_unchanged_without_exclusion(self, sample_items):
        assert refine_items(sample_items, {}) is sample_items

    def test_items_drop_excluded_fields(self, sample_items):
        assert refine_items(sample_items, EXCLUDE) == [{"ID": 1}, {"ID": 2}]


@pytest.mark.unit
class TestPageFlags:
    def test_has_next_page_from_last_evaluated_key(self):
        assert has_next_page({"LastEvaluatedKey": KEY_1}, {})
        assert not has_next_page({}, {})

    def test_backward_page_always_has_next(self):
        assert has_next_page({}, {"page": encode_prev(KEY_1)})

    def test_first_page_without_start_key(self):
        assert is_first_page({"LastEvaluatedKey": KEY_1}, {}, {"page": encode_next(KEY_1)})

    def test_forward_page_with_start_key_is_not_first(self):
        params = {"ExclusiveStartKey": KEY_1}
        assert not is_first_page({}, params, {"page": encode_next(KEY_1)})

    def test_backward_page_reaching_origin_is_first(self):
        params = {"ExclusiveStartKey": KEY_1}
        options = {"page": encode_prev(KEY_1)}
        assert is_first_page({}, params, options)
        assert not is_first_page({"LastEvaluatedKey": KEY_2}, params, options)


@pytest.mark.unit
class TestBuildPaginationKey:
    def test_no_items(self, table_config, query_params):
        assert build_pagination_key({"Items": []}, query_params, [], EXCLUDE, table_config) == {}

    def test_no_items_even_with_last_evaluated_key(self, table_config, query_params):
        result = {"Items": [], "LastEvaluatedKey": KEY_1}
        assert build_pagination_key(result, query_params, [], {}, table_config) == {}

    def test_next_page_uses_last_item(self, table_config, query_params, sample_items):
        result = {"Items": sample_items, "LastEvaluatedKey": KEY_2}
        key = build_pagination_key(result, query_params, sample_items, {}, table_config)
        assert key == {"nextPage": encode_next(KEY_2)}

    def test_middle_page_has_both(self, table_config, query_params, sample_items):
        params = {**query_params, "ExclusiveStartKey": {"ID": 0, "Range": 3}}
        result = {"Items": sample_items, "LastEvaluatedKey": KEY_2}
        key = build_pagination_key(
            result, params, sample_items, {"page": encode_next({"ID": 0, "Range": 3})}, table_config
        )
        assert key == {"nextPage": encode_next(KEY_2), "prevPage": encode_prev(KEY_1)}

    def test_cursor_carries_only_key_attributes(self, table_config, query_params, sample_items):
        result = {"Items": sample_items, "LastEvaluatedKey": KEY_2}
        key = build_pagination_key(result, query_params, sample_items, {}, table_config)
        assert key["nextPage"] == "eyJJRCI6MiwiUmFuZ2UiOjN9"


@pytest.mark.unit
class TestBuildResponse:
    def test_default_options(self, table_config, query_params, sample_items):
        page = build_response({"Items": sample_items}, query_params, {}, table_config)
        assert page.to_dict() == {"items": sample_items}

    def test_refined_items(self, table_config, query_params, sample_items):
        page = build_response({"Items": sample_items}, query_params, EXCLUDE, table_config)
        assert page.to_dict() == {"items": [{"ID": 1}, {"ID": 2}]}

    def test_forward_cursor_against_original_params(self, table_config, query_params, sample_items):
        options = {**EXCLUDE, "page": encode_next(KEY_1)}
        page = build_response({"Items": sample_items}, query_params, options, table_config)
        assert page.to_dict() == {"items": [{"ID": 1}, {"ID": 2}]}

    def test_backward_page_is_reversed(self, table_config, query_params, sample_items):
        options = {**EXCLUDE, "page": encode_prev(KEY_1)}
        page = build_response({"Items": sample_items}, query_params, options, table_config)
        assert page.to_dict() == {
            "items": [{"ID": 2}, {"ID": 1}],
            "nextPage": "eyJJRCI6MSwiUmFuZ2UiOjN9",
        }

    def test_raw_result_is_not_reordered(self, table_config, query_params, sample_items):
        result = {"Items": sample_items}
        build_response(result, query_params, {"page": encode_prev(KEY_1)}, table_config)
        assert result["Items"][0]["ID"] == 1

    def test_missing_items(self, table_config, query_params):
        page = build_response({}, query_params, {}, table_config)
        assert page.items == []
        assert page.to_dict() == {"items": []}


@pytest.mark.unit
class TestPageResult:
    def test_properties(self):
        page = PageResult(items=[{"ID": 1}], next_page="abc")
        assert page.count == 1
        assert page.has_more is True
        assert page.has_previous is False

    def test_to_dict_includes_cursors(self):
        page = PageResult(items=[], next_page="n", prev_page="-p")
        assert page.to_dict() == {"items": [], "nextPage": "n", "prevPage": "-p"}
