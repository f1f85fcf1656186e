from types import SimpleNamespace

import pytest

from rundown.engine.page_codec import assign_pages, normalize_block_code, page_code, parse_page_code
from rundown.infra.exceptions import ValidationError


class TestBlockCodes:
    def test_normalizes_case_and_whitespace(self):
        assert normalize_block_code(" b ") == "B"
        assert normalize_block_code("sport") == "SPORT"

    @pytest.mark.parametrize("bad", ["", None, "A1", "TOOLONG", "A-B"])
    def test_rejects_invalid(self, bad):
        with pytest.raises(ValidationError):
            normalize_block_code(bad)


class TestPageCodes:
    def test_page_code_is_block_then_number(self):
        assert page_code("A", 3) == "A3"

    def test_parse(self):
        assert parse_page_code("B12") == ("B", 12)
        assert parse_page_code("b") == ("B", None)

    @pytest.mark.parametrize("bad", ["", "12", "A1B", "ABCDEF1"])
    def test_parse_rejects_invalid(self, bad):
        with pytest.raises(ValidationError):
            parse_page_code(bad)

    def test_assign_pages_numbers_bulletin_wide(self):
        rows = [SimpleNamespace(block_code=b, page_number=None, page_code=None) for b in ("A", "A", "B", "C")]
        assert assign_pages(rows) == 4
        assert [r.page_code for r in rows] == ["A1", "A2", "B3", "C4"]
