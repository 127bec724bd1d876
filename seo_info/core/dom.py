"""
DOM capability used by every extractor and analyzer.

Analyzers only see `Document`, never BeautifulSoup directly, so tests can
build synthetic documents from HTML snippets.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, Comment, Tag

from seo_info.core.errors import AnalysisError

Element = Tag


class Document:
    """Read-only, selector-based view over a parsed HTML document."""

    def __init__(self, soup: BeautifulSoup):
        self._soup = soup

    def query_all(self, selector: str) -> list[Element]:
        return list(self._soup.select(selector))

    def query(self, selector: str) -> Element | None:
        return self._soup.select_one(selector)

    def meta_content(self, selector: str) -> str | None:
        """Return the `content` attribute of the first match, or None."""
        tag = self.query(selector)
        if tag is None:
            return None
        return tag.get("content")

    def text(self) -> str:
        """Visible text: scripts, styles and noscript blocks are excluded."""
        body = self._soup.body or self._soup
        parts = []
        for node in body.find_all(string=True):
            if isinstance(node, Comment):
                continue
            if node.parent is not None and node.parent.name in ("script", "style", "noscript", "template"):
                continue
            parts.append(str(node))
        return "".join(parts)

    @staticmethod
    def contains(ancestor: Element, element: Element) -> bool:
        """Identity-based containment (Tag equality in bs4 is structural)."""
        if ancestor is element:
            return True
        return any(parent is ancestor for parent in element.parents)

    @staticmethod
    def text_of(element: Element) -> str:
        return element.get_text()


def parse_document(html: str) -> Document:
    """Parse HTML with lxml. Non-text input is pipeline-fatal."""
    if isinstance(html, bytes):
        html = html.decode("utf-8", errors="replace")
    if not isinstance(html, str):
        raise AnalysisError(f"HTML content must be text, got {type(html).__name__}")
    try:
        return Document(BeautifulSoup(html, "lxml"))
    except Exception as exc:
        raise AnalysisError(f"Could not parse HTML: {exc}") from exc
