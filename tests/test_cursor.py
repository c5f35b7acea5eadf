import pytest

from querydeck.core.cursor import PageRequest, PaginationCursor
from querydeck.core.exceptions import CursorStateError, ValidationError


def test_page_request_strips_paging_before_storage():
    request = PageRequest.for_query("SELECT * FROM tickets LIMIT 5 OFFSET 15;", 10)
    assert request.base_query == "SELECT * FROM tickets"
    assert request.page_index == 0


def test_page_request_statements():
    request = PageRequest(base_query="SELECT * FROM tickets", page_index=2, page_size=10)
    assert request.offset == 20
    assert request.lookahead_statement == "SELECT * FROM tickets LIMIT 11 OFFSET 20"
    assert request.display_statement == "SELECT * FROM tickets LIMIT 10"


def test_first_page_has_no_offset():
    request = PageRequest(base_query="SELECT * FROM tickets", page_size=10)
    assert request.lookahead_statement == "SELECT * FROM tickets LIMIT 11"


def test_page_request_validates_bounds():
    with pytest.raises(ValueError):
        PageRequest(base_query="SELECT 1", page_index=-1)
    with pytest.raises(ValueError):
        PageRequest(base_query="SELECT 1", page_size=0)


def test_plan_run_uses_console_page_size():
    cursor = PaginationCursor(page_size=10)
    request, editor_text = cursor.plan_run("  SELECT * FROM tickets;  ")
    assert request.page_size == 10
    assert request.base_query == "SELECT * FROM tickets"
    assert editor_text == "SELECT * FROM tickets LIMIT 10"


def test_plan_run_honours_explicit_limit():
    cursor = PaginationCursor(page_size=10)
    request, editor_text = cursor.plan_run("SELECT * FROM tickets LIMIT 5; ")
    assert request.page_size == 5
    assert request.lookahead_statement == "SELECT * FROM tickets LIMIT 6"
    assert editor_text == "SELECT * FROM tickets LIMIT 5;"


def test_plan_run_does_not_touch_cursor():
    cursor = PaginationCursor(page_size=10)
    cursor.plan_run("SELECT * FROM tickets")
    assert cursor.request is None


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_plan_run_rejects_empty_text(text):
    with pytest.raises(ValidationError):
        PaginationCursor(page_size=10).plan_run(text)


def test_plan_run_rejects_zero_limit():
    with pytest.raises(ValidationError):
        PaginationCursor(page_size=10).plan_run("SELECT * FROM tickets LIMIT 0")


def test_navigation_preconditions():
    cursor = PaginationCursor(page_size=10)
    assert not cursor.can_go_next
    assert not cursor.can_go_previous
    with pytest.raises(CursorStateError):
        cursor.plan_next()
    with pytest.raises(CursorStateError):
        cursor.plan_previous()
    with pytest.raises(CursorStateError):
        cursor.plan_current()


def test_next_then_previous_returns_to_first_page():
    cursor = PaginationCursor(page_size=10)
    request, text = cursor.plan_run("SELECT * FROM tickets")
    cursor.commit(request, has_more=True, source_text=text)

    following = cursor.plan_next()
    assert following.page_index == 1
    cursor.commit(following, has_more=True)
    assert cursor.can_go_previous

    back = cursor.plan_previous()
    assert back.page_index == 0
    assert back.lookahead_statement == request.lookahead_statement


def test_mark_exhausted_keeps_position():
    cursor = PaginationCursor(page_size=10)
    request, text = cursor.plan_run("SELECT * FROM tickets")
    cursor.commit(request.at(3), has_more=True, source_text=text)
    cursor.mark_exhausted()
    assert cursor.page_index == 3
    assert not cursor.can_go_next


def test_is_current_for_tracks_editor_text():
    cursor = PaginationCursor(page_size=10)
    request, text = cursor.plan_run("SELECT * FROM tickets")
    cursor.commit(request, has_more=False, source_text=text)
    assert cursor.is_current_for("SELECT * FROM tickets LIMIT 10")
    assert not cursor.is_current_for("SELECT * FROM tickets WHERE id > 4")


def test_reset():
    cursor = PaginationCursor(page_size=10)
    request, text = cursor.plan_run("SELECT * FROM tickets")
    cursor.commit(request.at(2), has_more=True, source_text=text)
    cursor.reset()
    assert cursor.request is None
    assert cursor.page_index == 0
    assert not cursor.has_more


def test_plan_run_drops_typed_offset_from_editor_text():
    request, editor_text = PaginationCursor(page_size=10).plan_run("SELECT * FROM tickets LIMIT 5 OFFSET 15;")
    assert editor_text == "SELECT * FROM tickets LIMIT 5;"
    assert request.lookahead_statement == "SELECT * FROM tickets LIMIT 6"


def test_subquery_limit_becomes_page_size():
    request, _ = PaginationCursor(page_size=10).plan_run("SELECT * FROM (SELECT * FROM tickets LIMIT 3) t")
    assert request.page_size == 3
    assert request.base_query == "SELECT * FROM (SELECT * FROM tickets) t"


def test_statements_other_than_select_cannot_be_paged():
    cursor = PaginationCursor(page_size=10)
    request, text = cursor.plan_run("WITH t AS (SELECT * FROM tickets) SELECT * FROM t")
    assert not request.is_pageable

    cursor.commit(request.at(1), has_more=True, source_text=text)
    assert not cursor.can_go_next
    assert not cursor.can_go_previous
    with pytest.raises(CursorStateError):
        cursor.plan_next()
