"""
Unit tests for the shared key:value config grammar
"""

import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.config import Settings
from common.errors import FormatError, UnsupportedValueError
from common.types import IconRef
from query.grammar import (
    PathConfig,
    TextConfig,
    apply_defaults,
    marker_schema,
    parse_config,
    path_defaults,
    path_schema,
    split_tokens,
    text_schema,
    validate_color,
)

SETTINGS = Settings()


class TestSplitTokens:
    """Test cases for split_tokens"""

    def test_partition(self):
        locs, cfgs = split_tokens("color:red| 40.7,-73.9 ||weight:3|41.0,-74.0", "path")
        assert locs == [" 40.7,-73.9 ", "41.0,-74.0"]
        assert cfgs == ["color:red", "weight:3"]

    def test_blank_tokens_skipped(self):
        assert split_tokens("|| |", "marker") == ([], [])

    def test_comma_wins_over_colon(self):
        """A token with a comma is a location even if it also has a colon"""
        locs, cfgs = split_tokens("style:none62.107733,-145.541936", "marker")
        assert locs == ["style:none62.107733,-145.541936"]
        assert cfgs == []

    def test_unclassifiable_token(self):
        with pytest.raises(FormatError, match='Invalid marker token "62.107733"'):
            split_tokens("62.107733|-145.541936", "marker")


class TestValidators:
    """Color validator: 8 hex digits or a named color"""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("F83A0089", "#F83A0089"),
            ("f83a0089", "#F83A0089"),
            ("red", "#FF0000BB"),
            ("Yellow", "#FFFF00BB"),
        ],
    )
    def test_valid_colors(self, value, expected):
        assert validate_color("color", value) == expected

    @pytest.mark.parametrize("value", ["none", "#F83A0089", "#S83A0089", "#F83A00", "F83A00", "butter"])
    def test_invalid_colors(self, value):
        with pytest.raises(UnsupportedValueError, match=f'Invalid color configuration "color:{value}"'):
            validate_color("color", value)


class TestParseConfig:
    """Test cases for parse_config against the domain schemas"""

    def test_marker_color_resolves_icon(self):
        out = parse_config(["color:red"], marker_schema(SETTINGS))
        assert out == {"icon": IconRef(name="red", path=os.path.join("assets", "markers", "red-32.png"))}

    def test_marker_rejects_hex_color(self):
        with pytest.raises(UnsupportedValueError, match='Invalid color configuration "color:FF0000BB"'):
            parse_config(["color:FF0000BB"], marker_schema(SETTINGS))

    def test_unknown_key(self):
        with pytest.raises(UnsupportedValueError, match='Invalid marker configuration "style:none"'):
            parse_config(["style:none"], marker_schema(SETTINGS))
        with pytest.raises(UnsupportedValueError, match='Invalid text configuration "size:4"'):
            parse_config(["size:4"], text_schema(SETTINGS))

    @pytest.mark.parametrize("token", ["color:", "weight:", ":red"])
    def test_empty_key_or_value(self, token):
        with pytest.raises(FormatError, match=f'Invalid path configuration "{token}"'):
            parse_config([token], path_schema(SETTINGS))

    def test_weight(self):
        assert parse_config(["weight:7"], path_schema(SETTINGS)) == {"width": 7}
        for bad in ("string", "3.3", "-1"):
            with pytest.raises(FormatError, match="Should be integer type eg. 4"):
                parse_config([f"weight:{bad}"], path_schema(SETTINGS))

    def test_fillcolor_message(self):
        with pytest.raises(UnsupportedValueError, match='Invalid fillcolor configuration "fillcolor:WASDGWEE"'):
            parse_config(["fillcolor:WASDGWEE"], path_schema(SETTINGS))

    def test_first_colon_splits(self):
        """Only the first colon separates key and value"""
        with pytest.raises(FormatError, match='Invalid content configuration "content:a:b"'):
            parse_config(["content:a:b"], text_schema(SETTINGS))

    def test_text_keys(self):
        out = parse_config(
            ["content:Hello World", "font:Times New Roman", "fontsize:18", "anchor:START", "fillcolor:yellow"],
            text_schema(SETTINGS),
        )
        assert out == {
            "text": "Hello World",
            "font": "Times New Roman",
            "size": 18,
            "anchor": "start",
            "fill": "#FFFF00BB",
        }

    @pytest.mark.parametrize(
        "token, exc, msg",
        [
            ("content:Hello$", FormatError, 'Invalid content configuration "content:Hello$"'),
            ("font:Impact", UnsupportedValueError, 'Invalid font configuration "font:Impact"'),
            ("anchor:top", UnsupportedValueError, 'Invalid anchor configuration "anchor:top"'),
            ("fontsize:small", FormatError, 'Invalid fontsize configuration "fontsize:small"'),
        ],
    )
    def test_text_invalid(self, token, exc, msg):
        with pytest.raises(exc) as e:
            parse_config([token], text_schema(SETTINGS))
        assert e.value.message.startswith(msg)

    def test_fail_fast(self):
        """The first invalid token is the one reported"""
        with pytest.raises(UnsupportedValueError, match="color:none"):
            parse_config(["color:none", "weight:x"], path_schema(SETTINGS))


class TestApplyDefaults:
    def test_override_wins(self):
        cfg = apply_defaults(PathConfig, path_defaults(SETTINGS), {"width": 1})
        assert cfg == PathConfig(color=SETTINGS.path_color_default, width=1, fill=None)

    def test_text_without_content(self):
        cfg = apply_defaults(
            TextConfig,
            {"color": "c", "width": 1, "fill": "f", "size": 2, "font": "Arial", "anchor": "middle"},
            {},
        )
        assert cfg.text is None
