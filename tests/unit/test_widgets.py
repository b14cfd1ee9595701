from __future__ import annotations

from web2builder.convert.widgets import create_widget, is_button_like, reconstruct_list_html
from web2builder.models import ElementNode, Sides, StyleSnapshot
from web2builder.utils import ELEMENT_ID_RE, IdGenerator


def _node(
    tag: str,
    *children: ElementNode,
    text: str = "",
    attrs: dict[str, str] | None = None,
    class_name: str = "",
    style: StyleSnapshot | None = None,
) -> ElementNode:
    return ElementNode(
        tag=tag,
        style=style or StyleSnapshot(),
        text=text,
        attributes=attrs or {},
        class_name=class_name,
        children=list(children),
    )


def test_heading_widget() -> None:
    widget = create_widget(_node("h2", text="Welcome"), IdGenerator())
    assert widget is not None
    assert widget["elType"] == "widget"
    assert widget["widgetType"] == "heading"
    assert widget["settings"]["title"] == "Welcome"
    assert widget["settings"]["header_size"] == "h2"
    assert ELEMENT_ID_RE.match(widget["id"])
    assert ELEMENT_ID_RE.match(widget["settings"]["_element_id"])


def test_image_widget_keeps_source_and_width() -> None:
    node = _node("img", attrs={"src": "https://cdn.example.com/a.png", "alt": "Logo"}, style=StyleSnapshot(width=240))
    widget = create_widget(node, IdGenerator())
    assert widget["widgetType"] == "image"
    assert widget["settings"]["image"] == {"url": "https://cdn.example.com/a.png"}
    assert widget["settings"]["caption"] == "Logo"
    assert widget["settings"]["width"] == {"size": 240, "unit": "px"}


def test_link_with_button_class_becomes_button() -> None:
    node = _node("a", text="Buy now", attrs={"href": "/buy"}, class_name="btn-primary large")
    widget = create_widget(node, IdGenerator())
    assert widget["widgetType"] == "button"
    assert widget["settings"]["text"] == "Buy now"
    assert widget["settings"]["link"]["url"] == "/buy"


def test_link_with_paint_and_padding_becomes_button() -> None:
    style = StyleSnapshot(background_color="rgb(255, 0, 0)", padding=Sides(top="10px", left="20px"))
    node = _node("a", text="Go", attrs={"href": "/go"}, style=style)
    assert is_button_like(node)
    assert create_widget(node, IdGenerator())["widgetType"] == "button"


def test_painted_link_without_padding_stays_text() -> None:
    style = StyleSnapshot(background_color="rgb(255, 0, 0)")
    node = _node("a", text="Read more", attrs={"href": "/read"}, style=style)
    assert not is_button_like(node)
    widget = create_widget(node, IdGenerator())
    assert widget["widgetType"] == "text-editor"
    assert widget["settings"]["editor"] == '<a href="/read">Read more</a>'


def test_empty_text_container_is_dropped() -> None:
    assert create_widget(_node("div"), IdGenerator()) is None
    assert create_widget(None, IdGenerator()) is None


def test_paragraph_uses_inner_html() -> None:
    node = ElementNode(tag="p", text="Hello", inner_html="Hello <strong>world</strong>")
    widget = create_widget(node, IdGenerator())
    assert widget["widgetType"] == "text-editor"
    assert widget["settings"]["editor"] == "Hello <strong>world</strong>"


def test_submit_input_becomes_button_and_text_input_html() -> None:
    submit = create_widget(_node("input", attrs={"type": "submit", "value": "Send"}), IdGenerator())
    assert submit["widgetType"] == "button"
    assert submit["settings"]["text"] == "Send"

    field = create_widget(_node("input", attrs={"type": "email", "placeholder": "you@example.com"}), IdGenerator())
    assert field["widgetType"] == "html"
    assert 'type="email"' in field["settings"]["html"]
    assert field["settings"]["title"] == "INPUT Field"


def test_youtube_iframe_becomes_video() -> None:
    node = _node("iframe", attrs={"src": "https://www.youtube.com/embed/abc"})
    widget = create_widget(node, IdGenerator())
    assert widget["widgetType"] == "video"
    assert widget["settings"]["video_type"] == "youtube"
    assert widget["settings"]["youtube_url"] == "https://www.youtube.com/embed/abc"


def test_other_iframe_becomes_html() -> None:
    node = _node("iframe", attrs={"src": "https://maps.example.com/embed"})
    widget = create_widget(node, IdGenerator())
    assert widget["widgetType"] == "html"
    assert "maps.example.com" in widget["settings"]["html"]


def test_list_is_rebuilt_from_items() -> None:
    node = _node("ul", _node("li", text="One"), _node("li", _node("a", text="Two")))
    assert reconstruct_list_html(node) == "<ul><li>One</li><li>Two</li></ul>"
    widget = create_widget(node, IdGenerator())
    assert widget["widgetType"] == "text-editor"


def test_nav_collects_menu_items() -> None:
    node = _node(
        "nav",
        _node("ul", _node("li", _node("a", text="Home", attrs={"href": "/"})), _node("li", _node("a", text="Blog"))),
    )
    widget = create_widget(node, IdGenerator())
    assert widget["widgetType"] == "nav-menu"
    assert widget["settings"]["menu_items"] == [
        {"text": "Home", "url": "/"},
        {"text": "Blog", "url": "#"},
    ]


def test_table_and_svg_keep_markup() -> None:
    table = ElementNode(tag="table", outer_html="<table><tr><td>1</td></tr></table>")
    svg = ElementNode(tag="svg", outer_html="<svg viewBox='0 0 1 1'></svg>")
    assert create_widget(table, IdGenerator())["settings"]["title"] == "Table Element"
    assert create_widget(svg, IdGenerator())["settings"]["html"].startswith("<svg")


def test_empty_structural_element_still_emits_html() -> None:
    widget = create_widget(_node("footer"), IdGenerator())
    assert widget["widgetType"] == "html"
    assert widget["settings"]["title"] == "FOOTER Element"
    assert create_widget(_node("i"), IdGenerator()) is None
