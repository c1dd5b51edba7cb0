# bookstack_backup/exporter/converter.py
"""HTML → Markdown conversion for exported pages."""
from __future__ import annotations

import re

from bs4 import BeautifulSoup
from markdownify import ATX, MarkdownConverter

from bookstack_backup.logger import logger

_DROP_TAGS = ("script", "style", "noscript", "template")


def _convert(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(_DROP_TAGS):
        element.decompose()
    converter = MarkdownConverter(heading_style=ATX, bullets="-")
    markdown = converter.convert_soup(soup)
    # markdownify leaves runs of blank lines around block elements
    return re.sub(r"\n{3,}", "\n\n", markdown).strip()


def html_to_markdown(html: str) -> str:
    """Convert *html* to Markdown; on any conversion failure return *html* unchanged."""
    if not html:
        return ""
    try:
        return _convert(html)
    except Exception as exc:  # noqa: BLE001 - fallback to the raw body
        logger.warning("Markdown conversion error, keeping raw HTML: %s", exc)
        return html
