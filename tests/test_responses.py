"""Tests for paginated list envelopes."""

import pytest

from suggestion_engine.core.exceptions import TransportError
from suggestion_engine.core.responses import Page, PaginationMeta
from suggestion_engine.models.domain.person import Person


def test_data_envelope_with_pagination():
    payload = {
        "data": [{"id": "p1", "name": "Mia"}, {"id": "p2", "name": "Ana"}],
        "pagination": {"page": 1, "pageSize": 2, "total": 5},
    }

    page = Page.from_envelope(payload, Person)

    assert [p.name for p in page.items] == ["Mia", "Ana"]
    assert page.meta.total_pages == 3
    assert page.has_next


def test_items_envelope_with_top_level_fields():
    payload = {"items": [{"id": 3, "name": "Leo"}], "total": 3, "page": 3, "page_size": 1}

    page = Page.from_envelope(payload, Person)

    assert page.items[0].id == "3"
    assert page.meta.page == 3
    assert not page.has_next
    assert page.meta.has_prev


def test_missing_total_is_inferred_from_page():
    page = Page.from_envelope({"data": [{"id": "p1", "name": "Mia"}]}, Person, page=2, page_size=10)

    assert page.meta.total == 11
    assert not page.has_next


@pytest.mark.parametrize("payload", [[], {"results": []}, {"data": "nope"}])
def test_malformed_envelope_raises(payload):
    with pytest.raises(TransportError):
        Page.from_envelope(payload, Person)


def test_pagination_meta():
    meta = PaginationMeta.create(page=1, page_size=20, total=0)

    assert meta.total_pages == 0
    assert not meta.has_next
    assert not meta.has_prev
