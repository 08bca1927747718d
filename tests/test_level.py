"""Tests for level string and .gmd building."""

import base64
import re

from gd_image_to_text.core.level import (
    LEVEL_HEADER,
    LevelSettings,
    b64,
    build_gmd,
    build_level_string,
    decode_level,
    encode_level,
    format_number,
    text_object,
)

LAYERS = ["O\nOO", "o=\n  ", "..\nO"]


def _objects(level_string):
    return level_string.split(";")[len(LEVEL_HEADER.split(";")):]


def _fields(obj):
    parts = obj.split(",")
    return dict(zip(parts[::2], parts[1::2]))


class TestHeader:
    def test_starts_with_level_settings(self):
        assert LEVEL_HEADER.startswith("kS38,1_255_2_0_3_0_")
        assert "kA18,9" in LEVEL_HEADER

    def test_has_color_triggers(self):
        assert LEVEL_HEADER.count(";1,899,") == 4


class TestTextObject:
    def test_fields(self):
        obj = text_object("O\nOO", 0, False, LevelSettings())
        fields = _fields(obj)
        assert fields["1"] == "914"
        assert fields["2"] == "285"
        assert fields["3"] == "150"
        assert fields["32"] == "0.075"
        assert fields["21"] == "2"
        assert fields["24"] == "-3"
        assert base64.urlsafe_b64decode(fields["31"]).decode() == "O\nOO"

    def test_custom_placement(self):
        settings = LevelSettings(object_scale=0.5, x=10.5, y=-3)
        fields = _fields(text_object("O", 2, False, settings))
        assert fields["2"] == "10.5"
        assert fields["3"] == "-3"
        assert fields["32"] == "0.5"
        assert fields["21"] == "4"
        assert fields["24"] == "1"

    def test_tiny_scale_has_no_exponent(self):
        settings = LevelSettings(object_scale=0.00001)
        assert _fields(text_object("O", 0, True, settings))["32"] == "0.00001"


class TestFormatNumber:
    def test_whole_float_drops_fraction(self):
        assert format_number(285.0) == "285"

    def test_short_decimal(self):
        assert format_number(0.075) == "0.075"

    def test_small_value_is_positional(self):
        assert format_number(1e-05) == "0.00001"
        assert format_number(2.5e-07) == "0.00000025"

    def test_large_value_is_positional(self):
        assert format_number(1e16) == "10000000000000000"

    def test_negative(self):
        assert format_number(-3) == "-3"


class TestBuildLevelString:
    def test_color_mode_has_three_objects(self):
        level = build_level_string(LAYERS, grayscale=False)
        assert level.startswith(LEVEL_HEADER + ";")
        objects = _objects(level)
        assert len(objects) == 3
        assert [_fields(o)["21"] for o in objects] == ["2", "3", "4"]
        assert [_fields(o)["24"] for o in objects] == ["-3", "-1", "1"]
        decoded = [base64.urlsafe_b64decode(_fields(o)["31"]).decode() for o in objects]
        assert decoded == LAYERS

    def test_grayscale_uses_white_channel(self):
        level = build_level_string(["OO\nOO"], grayscale=True)
        objects = _objects(level)
        assert len(objects) == 1
        assert _fields(objects[0])["21"] == "1"

    def test_b64_is_url_safe(self):
        assert b64(bytes([251, 255])) == "-_8="


class TestEncoding:
    def test_decode_inverts_encode(self):
        level = build_level_string(LAYERS, grayscale=False)
        encoded = encode_level(level)
        assert re.fullmatch(r"[A-Za-z0-9_\-=]+", encoded)
        assert decode_level(encoded) == level


class TestBuildGmd:
    def test_document(self):
        level = build_level_string(LAYERS, grayscale=False)
        doc = build_gmd(level, name="My <level>")
        assert doc.startswith("<d>\n")
        assert doc.endswith("</d>")
        assert "<k>k2</k><s>My &lt;level&gt;</s>" in doc

        k4 = re.search(r"<k>k4</k><s>([^<]+)</s>", doc).group(1)
        assert decode_level(k4) == level

    def test_description_double_encoded(self):
        doc = build_gmd(build_level_string(["O"], grayscale=True))
        k3 = re.search(r"<k>k3</k><s>([^<]+)</s>", doc).group(1)
        once = base64.urlsafe_b64decode(k3)
        text = base64.urlsafe_b64decode(once).decode()
        assert text.startswith("Generated using gd-image-to-text")
