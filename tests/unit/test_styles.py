from __future__ import annotations

from web2builder.convert.styles import (
    background_settings,
    column_settings,
    convert_spacing,
    extract_image_url,
    section_settings,
    typography_settings,
)
from web2builder.models import ElementNode, Sides, StyleSnapshot


def test_extract_image_url() -> None:
    assert extract_image_url('url("https://cdn.example.com/hero.jpg")') == "https://cdn.example.com/hero.jpg"
    assert extract_image_url("linear-gradient(red, blue), url(/a.png)") == "/a.png"
    assert extract_image_url("none") is None
    assert extract_image_url("") is None


def test_convert_spacing_truncates_lengths() -> None:
    spacing = convert_spacing(Sides(top="10px", right="5.5px", bottom="0px", left="auto"))
    assert spacing == {"top": 10, "right": 5, "bottom": 0, "left": 0, "unit": "px", "isLinked": False}


def test_transparent_background_is_omitted() -> None:
    assert background_settings(StyleSnapshot(background_color="rgba(0, 0, 0, 0)")) == {}
    assert background_settings(StyleSnapshot(background_color="transparent")) == {}
    painted = background_settings(StyleSnapshot(background_color="rgb(1, 2, 3)"))
    assert painted == {"background_background": "classic", "background_color": "rgb(1, 2, 3)"}


def test_section_background_image_defaults_to_cover() -> None:
    style = StyleSnapshot(background_image='url("/hero.jpg")', background_size="auto")
    settings = background_settings(style, with_image=True)
    assert settings["background_image"] == {"url": "/hero.jpg"}
    assert settings["background_size"] == "cover"


def test_section_settings_structure_and_height() -> None:
    assert section_settings(None, 8)["structure"] == "60"
    assert section_settings(None, 0)["structure"] == "10"
    node = ElementNode(tag="section", style=StyleSnapshot(height=320, background_color="rgb(0, 0, 0)"))
    settings = section_settings(node, 2)
    assert settings["structure"] == "20"
    assert settings["height"] == "min-height"
    assert settings["custom_height"] == {"size": 320, "unit": "px"}
    assert settings["background_color"] == "rgb(0, 0, 0)"


def test_column_settings_border() -> None:
    node = ElementNode(
        tag="div",
        style=StyleSnapshot(border_style="solid", border_width="2px", border_color="rgb(9, 9, 9)", border_radius="6px"),
    )
    settings = column_settings(node)
    assert settings["border_border"] == "solid"
    assert settings["border_color"] == "rgb(9, 9, 9)"
    assert settings["border_radius"]["top"] == 6
    assert column_settings(None) == {"_column_size": 100, "_inline_size": None}


def test_typography_settings() -> None:
    style = StyleSnapshot(font_family="Inter, sans-serif", font_size="18px", line_height="27px", text_align="center")
    settings = typography_settings(style)
    assert settings["typography_font_family"] == "Inter, sans-serif"
    assert settings["typography_font_size"] == {"size": 18, "unit": "px"}
    assert settings["typography_line_height"] == {"size": 27.0, "unit": "px"}
    assert settings["align"] == "center"
    assert "align" not in typography_settings(StyleSnapshot(text_align="start"))
