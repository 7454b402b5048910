"""HTML templating: replace the text of one marker element.

The document is parsed once.  As each element is created the element
filter is consulted, and the first element it selects is remembered:
there is no second query pass over the finished tree.  The marker must
have exactly one child, a text node; that text goes through the content
processor and is replaced in place.

The tree is an arena of ``Node`` records addressed by index.  Every node
remembers the span of source text it was parsed from, so serializing
writes the original markup back verbatim.  Only the replaced text node
is rendered from its new value; nothing else is re-encoded, including
``<noscript>`` content and anything the parser would otherwise
normalize.

Usage::

    processor = HtmlProcessor(ScriptTag("application/spa-cfg"), lambda text: text.upper())
    output = processor.process(b"<script type=application/spa-cfg>x</script>")
"""

import html
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum, auto
from html.parser import HTMLParser

from sap.errors import (
    ContentProcessorError,
    HtmlParsingError,
    TemplateContentNotFound,
    TemplateElementHasMoreThanOneChild,
    TemplateNonTextContent,
    TemplateNotFound,
)
from sap.templating.processors import (
    Attrs,
    ContentProcessor,
    ElementFilter,
    ElementFlags,
    as_processor,
)

logger = logging.getLogger("sap.templating")

VOID_ELEMENTS = frozenset(
    {
        "area", "base", "br", "col", "embed", "hr", "img", "input",
        "link", "meta", "param", "source", "track", "wbr",
    }
)  # fmt: skip

# Text inside these is written without escaping.
RAW_TEXT_ELEMENTS = frozenset(
    {"script", "style", "xmp", "iframe", "noembed", "noframes", "noscript", "plaintext"}
)

# End tags that may be omitted without it being a parse error.
OPTIONAL_END_TAGS = frozenset(
    {
        "html", "head", "body", "p", "li", "dt", "dd", "option", "optgroup",
        "tr", "td", "th", "thead", "tbody", "tfoot", "colgroup", "caption",
        "rb", "rt", "rtc", "rp",
    }
)  # fmt: skip


class NodeKind(Enum):
    DOCUMENT = auto()
    ELEMENT = auto()
    TEXT = auto()
    COMMENT = auto()
    DOCTYPE = auto()
    PROCESSING_INSTRUCTION = auto()
    # Markup kept only for serialization (stray end tags, CDATA sections).
    RAW = auto()


@dataclass(slots=True)
class Node:
    kind: NodeKind
    parent: int | None
    start: int
    end: int = -1
    tag: str = ""
    attrs: Attrs = field(default_factory=list)
    children: list[int] = field(default_factory=list)
    # Span of the explicit end tag, when the source had one.
    end_tag_start: int = -1
    end_tag_end: int = -1
    data: str = ""
    replaced: bool = False


class Document:
    """Arena of parsed nodes.  Index 0 is always the document node."""

    __slots__ = ("nodes", "source")

    def __init__(self, source: str) -> None:
        self.source = source
        self.nodes: list[Node] = [Node(NodeKind.DOCUMENT, parent=None, start=0)]

    def add(self, node: Node) -> int:
        index = len(self.nodes)
        self.nodes.append(node)
        if node.parent is not None:
            self.nodes[node.parent].children.append(index)
        return index

    def children(self, index: int) -> list[int]:
        return self.nodes[index].children

    def replace_text(self, index: int, data: str) -> None:
        node = self.nodes[index]
        if node.kind is not NodeKind.TEXT:
            msg = f"Node {index} is a {node.kind.name}, not TEXT."
            raise ValueError(msg)
        node.data = data
        node.replaced = True

    def _render_text(self, node: Node) -> str:
        if not node.replaced:
            return self.source[node.start : node.end]
        parent = self.nodes[node.parent] if node.parent is not None else None
        if parent is not None and parent.tag in RAW_TEXT_ELEMENTS:
            return node.data
        return html.escape(node.data, quote=False)

    def iter_chunks(self) -> Iterator[str]:
        """Yield the serialized document in order, without recursion."""
        stack: list[tuple[int, bool]] = [(0, False)]
        while stack:
            index, closing = stack.pop()
            node = self.nodes[index]
            if closing:
                if node.end_tag_start >= 0:
                    yield self.source[node.end_tag_start : node.end_tag_end]
                continue
            if node.kind is NodeKind.TEXT:
                yield self._render_text(node)
            else:
                yield self.source[node.start : node.end]
            if node.children or node.end_tag_start >= 0:
                stack.append((index, True))
                stack.extend((child, False) for child in reversed(node.children))

    def serialize(self) -> str:
        return "".join(self.iter_chunks())


@dataclass(slots=True)
class ParseResult:
    document: Document
    template: int | None
    errors: list[str]


class _TreeBuilder(HTMLParser):
    """Builds a ``Document`` from ``HTMLParser`` events.

    Each event's source span runs from its start offset to the start of
    the next event, so spans tile the input and nothing is lost.
    """

    def __init__(self, source: str, element_filter: ElementFilter) -> None:
        super().__init__(convert_charrefs=True)
        self.document = Document(source)
        self.element_filter = element_filter
        self.template: int | None = None
        self.errors: list[str] = []
        self._open: list[int] = [0]
        self._span_owner: tuple[int, bool] | None = (0, False)
        self._line_starts = [0]
        for i, ch in enumerate(source):
            if ch == "\n":
                self._line_starts.append(i + 1)

    # -- Spans --

    def _offset(self) -> int:
        line, column = self.getpos()
        return self._line_starts[line - 1] + column

    def _close_span(self, offset: int) -> None:
        if self._span_owner is None:
            return
        index, is_end_tag = self._span_owner
        node = self.document.nodes[index]
        if is_end_tag:
            node.end_tag_end = offset
        else:
            node.end = offset
        self._span_owner = None

    def _begin(self, node: Node) -> int:
        self._close_span(node.start)
        index = self.document.add(node)
        self._span_owner = (index, False)
        return index

    @property
    def _current(self) -> int:
        return self._open[-1]

    # -- Events --

    def _create_element(self, tag: str, attrs: Attrs, flags: ElementFlags) -> int:
        index = self._begin(
            Node(NodeKind.ELEMENT, parent=self._current, start=self._offset(), tag=tag, attrs=attrs)
        )
        if self.template is None and self.element_filter.selects(tag, attrs, flags):
            self.template = index
        return index

    def handle_starttag(self, tag: str, attrs: Attrs) -> None:
        index = self._create_element(tag, attrs, ElementFlags(self_closing=False))
        if tag not in VOID_ELEMENTS:
            self._open.append(index)

    def handle_startendtag(self, tag: str, attrs: Attrs) -> None:
        self._create_element(tag, attrs, ElementFlags(self_closing=True))

    def handle_endtag(self, tag: str) -> None:
        offset = self._offset()
        for depth in range(len(self._open) - 1, 0, -1):
            index = self._open[depth]
            if self.document.nodes[index].tag != tag:
                continue
            for implied in self._open[depth + 1 :]:
                implied_tag = self.document.nodes[implied].tag
                if implied_tag not in OPTIONAL_END_TAGS:
                    self.errors.append(f"unclosed element <{implied_tag}> before </{tag}>")
            del self._open[depth:]
            self._close_span(offset)
            node = self.document.nodes[index]
            node.end_tag_start = offset
            self._span_owner = (index, True)
            return

        if tag not in VOID_ELEMENTS:
            self.errors.append(f"unexpected end tag </{tag}>")
        self._begin(Node(NodeKind.RAW, parent=self._current, start=offset, tag=tag))

    def handle_data(self, data: str) -> None:
        siblings = self.document.children(self._current)
        if siblings and self._span_owner == (siblings[-1], False):
            previous = self.document.nodes[siblings[-1]]
            if previous.kind is NodeKind.TEXT:
                previous.data += data
                return
        self._begin(Node(NodeKind.TEXT, parent=self._current, start=self._offset(), data=data))

    def handle_comment(self, data: str) -> None:
        self._begin(Node(NodeKind.COMMENT, parent=self._current, start=self._offset(), data=data))

    def handle_decl(self, decl: str) -> None:
        self._begin(Node(NodeKind.DOCTYPE, parent=self._current, start=self._offset(), data=decl))

    def handle_pi(self, data: str) -> None:
        self._begin(
            Node(
                NodeKind.PROCESSING_INSTRUCTION,
                parent=self._current,
                start=self._offset(),
                data=data,
            )
        )

    def unknown_decl(self, data: str) -> None:
        self._begin(Node(NodeKind.RAW, parent=self._current, start=self._offset(), data=data))

    def close(self) -> None:
        super().close()
        self._close_span(len(self.document.source))
        for index in self._open[1:]:
            tag = self.document.nodes[index].tag
            if tag not in OPTIONAL_END_TAGS:
                self.errors.append(f"unclosed element <{tag}> at end of document")


def parse(source: str, element_filter: ElementFilter) -> ParseResult:
    """Parse *source*, capturing the first element *element_filter* selects."""
    builder = _TreeBuilder(source, element_filter)
    builder.feed(source)
    builder.close()
    return ParseResult(document=builder.document, template=builder.template, errors=builder.errors)


class HtmlProcessor:
    """Template processor for HTML documents.

    Args:
        element_filter: Selects the marker element.
        content_processor: Produces the replacement text.  A plain
            ``str -> str`` callable is accepted.
        strict: Raise ``HtmlParsingError`` on recoverable parse errors
            instead of logging them as warnings.
    """

    __slots__ = ("content_processor", "element_filter", "strict")

    def __init__(
        self,
        element_filter: ElementFilter,
        content_processor: ContentProcessor | Callable[[str], str],
        *,
        strict: bool = False,
    ) -> None:
        self.element_filter = element_filter
        self.content_processor = as_processor(content_processor)
        self.strict = strict

    def process(self, html_bytes: bytes) -> bytes:
        """Return *html_bytes* with the marker element's text replaced.

        Raises:
            HtmlParsingError: Strict mode and the document had parse errors.
            TemplateNotFound: No element matched the filter.
            TemplateElementHasMoreThanOneChild: The marker has several children.
            TemplateContentNotFound: The marker has no children.
            TemplateNonTextContent: The marker's only child isn't text.
            ContentProcessorError: The content processor raised.
        """
        # surrogateescape keeps undecodable bytes intact through the round trip.
        source = html_bytes.decode("utf-8", errors="surrogateescape")
        result = parse(source, self.element_filter)

        if result.errors:
            if self.strict:
                raise HtmlParsingError(tuple(result.errors))
            logger.warning("HTML parsing errors: %s", "; ".join(result.errors))

        if result.template is None:
            raise TemplateNotFound()

        document = result.document
        children = document.children(result.template)
        if len(children) > 1:
            raise TemplateElementHasMoreThanOneChild(len(children))
        if not children:
            raise TemplateContentNotFound()

        child = document.nodes[children[0]]
        if child.kind is not NodeKind.TEXT:
            raise TemplateNonTextContent()

        try:
            replacement = self.content_processor.process(child.data)
        except Exception as exc:
            raise ContentProcessorError(exc) from exc

        document.replace_text(children[0], replacement)
        return document.serialize().encode("utf-8", errors="surrogateescape")


def process(
    html_bytes: bytes,
    element_filter: ElementFilter,
    content_processor: ContentProcessor | Callable[[str], str],
    *,
    strict: bool = False,
) -> bytes:
    """Functional form of ``HtmlProcessor(...).process(html_bytes)``."""
    return HtmlProcessor(element_filter, content_processor, strict=strict).process(html_bytes)
