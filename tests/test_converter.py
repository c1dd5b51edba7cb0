# File: tests/test_converter.py
import bookstack_backup.exporter.converter as converter_module
from bookstack_backup.exporter.converter import html_to_markdown


def test_converts_headings_and_emphasis():
    md = html_to_markdown("<h1>Title</h1><p>Hello <strong>world</strong></p>")
    assert md.startswith("# Title")
    assert "**world**" in md


def test_drops_script_and_style():
    md = html_to_markdown("<p>text</p><script>alert(1)</script><style>p{}</style>")
    assert md == "text"


def test_collapses_blank_lines():
    md = html_to_markdown("<p>one</p><p></p><p></p><p>two</p>")
    assert "\n\n\n" not in md
    assert md.startswith("one") and md.endswith("two")


def test_empty_html_gives_empty_body():
    assert html_to_markdown("") == ""


def test_failure_returns_original_html(monkeypatch):
    def explode(html):
        raise ValueError("cannot convert")

    monkeypatch.setattr(converter_module, "_convert", explode)
    html = "<p>unchanged</p>"
    assert html_to_markdown(html) == html
