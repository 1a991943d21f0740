"""
Tests for poscore.pagination — offset pages.
"""

from poscore.pagination import Page, normalize, paginate


ITEMS = ("a", "b", "c", "d", "e")


class TestPaginate:
    def test_first_page(self):
        page = paginate(ITEMS, page=1, page_size=2)
        assert page.items == ("a", "b")
        assert page.total == 5
        assert page.total_pages == 3
        assert page.has_more

    def test_last_partial_page(self):
        page = paginate(ITEMS, page=3, page_size=2)
        assert page.items == ("e",)
        assert not page.has_more

    def test_beyond_last_page_is_empty_with_total(self):
        page = paginate(ITEMS, page=10, page_size=2)
        assert page.items == ()
        assert page.total == 5

    def test_values_below_one_treated_as_one(self):
        page = paginate(ITEMS, page=0, page_size=-3)
        assert page.page == 1
        assert page.page_size == 1
        assert page.items == ("a",)

    def test_max_page_size_clamps(self):
        page = paginate(ITEMS, page=1, page_size=50, max_page_size=3)
        assert page.page_size == 3
        assert len(page.items) == 3

    def test_empty_sequence(self):
        page = paginate((), page=1, page_size=20)
        assert page.items == ()
        assert page.total == 0
        assert page.total_pages == 0
        assert not page.has_more


class TestNormalize:
    def test_passes_valid_values(self):
        assert normalize(2, 10) == (2, 10)

    def test_clamps(self):
        assert normalize(-1, 0, max_page_size=5) == (1, 1)
        assert normalize(1, 500, max_page_size=100) == (1, 100)


class TestPageToDict:
    def test_shape(self):
        data = Page(items=(1, 2), total=4, page=1, page_size=2).to_dict()
        assert data["items"] == [1, 2]
        assert data["pagination"] == {
            "page": 1,
            "limit": 2,
            "total": 4,
            "total_pages": 2,
            "has_more": True,
        }
