"""
Unit tests for the "lat,lon" location parser
"""

import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.errors import FormatError, RangeError
from common.types import Coordinate
from query.location import parse_center, parse_location, parse_location_fragment

FORMAT_MSG = "Invalid geo coordinate format. Eg. -12.445,78.12484"


class TestParseLocation:
    """Test cases for parse_location"""

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            " ",
            "kf",
            "82.124",
            "82.124,",
            ",12.344",
            "--3.2344,12.344",
            "--3.2344,-12.344",
            "-3.2344,-12,344",
            "-3.2344,-12..344",
            "-3.2344,-12.34.4",
            "1.,2.5",
        ],
    )
    def test_invalid_format(self, raw):
        """Malformed tokens are format errors"""
        with pytest.raises(FormatError, match=FORMAT_MSG):
            parse_location(raw)

    def test_latitude_checked_first(self):
        """Latitude range is reported even when longitude is also wrong"""
        with pytest.raises(RangeError, match="Latitude should be within -90 and 90"):
            parse_location("-91.2344,191.234")
        with pytest.raises(RangeError, match="Latitude should be within -90 and 90"):
            parse_location("-91.2344,0.234")

    def test_longitude_range(self):
        with pytest.raises(RangeError, match="Longitude should be within -180 and 180"):
            parse_location("-9.2344,191.234")

    def test_axis_swap(self):
        """Input is lat,lon; output is stored as (lon, lat)"""
        c = parse_location("-12.445,78.12484")
        assert c == Coordinate(longitude=78.12484, latitude=-12.445)
        assert parse_location(" -12.445,-78.12484  ") == Coordinate(longitude=-78.12484, latitude=-12.445)

    def test_bounds_inclusive(self):
        assert parse_location("90,180") == Coordinate(longitude=180.0, latitude=90.0)
        assert parse_location("-90,-180") == Coordinate(longitude=-180.0, latitude=-90.0)


class TestParseLocationFragment:
    """Errors raised from inside markers/path/text values name the token"""

    def test_format_error_names_fragment(self):
        with pytest.raises(FormatError) as exc:
            parse_location_fragment(", ")
        assert exc.value.message == 'Invalid location found ", ". Eg. -12.445,78.12484'
        assert exc.value.fragment == ", "

    def test_range_error_names_fragment(self):
        with pytest.raises(RangeError) as exc:
            parse_location_fragment("62.107733,-195.541936")
        assert exc.value.message == (
            'Invalid location found "62.107733,-195.541936". Longitude should be within -180 and 180'
        )


class TestParseCenter:
    """Test cases for parse_center"""

    def test_blank_center(self):
        assert parse_center(None) is None
        assert parse_center("") is None
        assert parse_center(" ") is None

    def test_valid_center(self):
        assert parse_center("62.107733,-145.541936") == Coordinate(longitude=-145.541936, latitude=62.107733)

    def test_invalid_center(self):
        with pytest.raises(FormatError, match="center should be string type"):
            parse_center(10)
        with pytest.raises(FormatError, match=FORMAT_MSG):
            parse_center("10|15")
        with pytest.raises(RangeError, match="Latitude"):
            parse_center("100,190")
        with pytest.raises(RangeError, match="Longitude"):
            parse_center("10,190")
