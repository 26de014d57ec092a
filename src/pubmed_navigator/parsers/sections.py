"""
Full-text section reconstruction for PMC (JATS) articles.

Walks ``<body>`` recursively, turning ``<sec>`` / ``<title>`` / ``<p>`` into
an ordered list of Sections plus a flat text buffer. When the walk finds
nothing, the whole ``<article>`` is flattened into a single fallback section.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pubmed_navigator.constants import DEFAULT_SECTION_TITLE, FALLBACK_SECTION_TITLE
from pubmed_navigator.models.model_pubmed import Section
from pubmed_navigator.parsers.xml_tree import Element, flatten_text


@dataclass
class ExtractedText:
    sections: list[Section] = field(default_factory=list)
    full_text: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.sections and not self.full_text.strip()


def paragraph_block(element: Element) -> str:
    """Flattened ``<p>`` children of *element*, blank-line separated."""
    paragraphs = (flatten_text(p) for p in element.children_named("p"))
    return "\n\n".join(text for text in paragraphs if text)


class _SectionWalker:
    def __init__(self) -> None:
        self.sections: list[Section] = []
        self._buffer: list[str] = []

    @property
    def full_text(self) -> str:
        return "".join(self._buffer)

    def emit(self, title: str, content: str) -> None:
        self.sections.append(Section(title=title, content=content))
        self._buffer.append(f"{title}\n{content}\n")

    def walk_sections(self, element: Element, inherited_title: str) -> None:
        for sec in element.children_named("sec"):
            title = flatten_text(sec.child("title")) or inherited_title
            if sec.children_named("sec"):
                # Nested sections own the text; this level's <p> is dropped.
                self.walk_sections(sec, title)
                continue
            content = paragraph_block(sec)
            if content:
                self.emit(title, content)

    def walk_body(self, body: Element) -> None:
        self.walk_sections(body, DEFAULT_SECTION_TITLE)
        content = paragraph_block(body)
        if content:
            self.emit(DEFAULT_SECTION_TITLE, content)


def extract_sections(article: Element) -> ExtractedText:
    """Reconstruct the section list and flat text of a PMC ``<article>``.

    Returns an empty ExtractedText when neither the structured walk nor the
    whole-article fallback recovers any text; the caller decides whether
    that matters.
    """
    walker = _SectionWalker()
    body = article.child("body")
    if body is not None:
        walker.walk_body(body)

    if walker.sections or walker.full_text.strip():
        return ExtractedText(sections=walker.sections, full_text=walker.full_text)

    all_text = flatten_text(article)
    if not all_text:
        return ExtractedText()
    return ExtractedText(
        sections=[Section(title=FALLBACK_SECTION_TITLE, content=all_text)],
        full_text=all_text,
    )
