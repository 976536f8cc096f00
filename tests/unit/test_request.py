"""
Unit tests for whole-query assembly (parse_map_request / parse_map_query)
"""

import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.config import Settings
from common.errors import ParseResult, RangeError, RequiredFieldError
from common.types import Coordinate, Size
from query.request import parse_map_query, parse_map_request

SETTINGS = Settings()


class TestParseMapRequest:
    """Scenarios from real query strings"""

    def test_center_only(self):
        """size=600x400&center=12.02414,130.12344"""
        req = parse_map_request({"size": "600x400", "center": "12.02414,130.12344"}, SETTINGS)
        assert req.size == Size(600, 400)
        assert req.center == Coordinate(longitude=130.12344, latitude=12.02414)
        assert req.zoom is None
        assert req.format.extension == SETTINGS.format_default
        assert req.markers == [] and req.paths == [] and req.texts == []

    def test_markers(self):
        req = parse_map_request({"markers": "color:red|62.107733,-145.541936"}, SETTINGS)
        [m] = req.markers
        assert m.icon.name == "red"
        assert (m.width, m.height) == (32, 32)
        assert req.center is None

    def test_no_content(self):
        with pytest.raises(RequiredFieldError, match="At least center, markers, path or text parameter is required"):
            parse_map_request({"size": "100x200"}, SETTINGS)

    def test_repeated_groups(self):
        """markers / path / text may repeat; scalar params use the first value"""
        req = parse_map_request(
            {
                "size": ["100x200", "9999x9999"],
                "markers": ["color:red|40.7,-73.9", "color:blue|41.0,-74.0|41.1,-74.1"],
                "path": ["40.7,-73.9|41.0,-74.0", "40.0,-73.0|40.5,-73.5"],
            },
            SETTINGS,
        )
        assert req.size == Size(100, 200)
        assert [m.icon.name for m in req.markers] == ["red", "blue", "blue"]
        assert len(req.paths) == 2

    def test_single_text_becomes_center(self):
        req = parse_map_request({"text": "content:Hello World|40.714728,-73.998672"}, SETTINGS)
        assert req.center == Coordinate(longitude=-73.998672, latitude=40.714728)

    def test_explicit_center_kept_with_text(self):
        req = parse_map_request(
            {"text": "content:Hello|40.714728,-73.998672", "center": "10,10"}, SETTINGS
        )
        assert req.center == Coordinate(longitude=10.0, latitude=10.0)

    def test_first_error_wins(self):
        """size is checked before markers"""
        with pytest.raises(RangeError, match="Image width"):
            parse_map_request({"size": "1x400", "markers": "color:none|1,1"}, SETTINGS)


class TestParseMapQuery:
    """parse_map_query returns a ParseResult instead of raising"""

    def test_ok(self):
        res = parse_map_query({"center": "1,2"}, SETTINGS)
        assert isinstance(res, ParseResult)
        assert res.ok
        assert res.unwrap().center == Coordinate(longitude=2.0, latitude=1.0)

    def test_error_carries_kind_and_fragment(self):
        res = parse_map_query({"center": "1,2", "zoom": "99"}, SETTINGS)
        assert not res.ok
        assert res.value is None
        assert res.error.kind == "range"
        assert res.error.fragment == "99"
        with pytest.raises(RangeError):
            res.unwrap()

    def test_result_needs_exactly_one_side(self):
        with pytest.raises(ValueError):
            ParseResult()
