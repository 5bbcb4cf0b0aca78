"""
Markup event stream over a dump, backed by lxml's pull parser.

The parser is fed one chunk at a time. A finished element below an entity
is collapsed into a leaf holding its full text, and a finished entity is
cleared and detached from the dump root, so memory stays proportional to
one entity rather than to the size of the dump.
"""

import enum
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional
from lxml import etree
from core.exceptions import MalformedInput, TruncatedInput
import logging

logger = logging.getLogger(__name__)

# Children of the dump root
ENTITY_DEPTH = 1


class EventKind(str, enum.Enum):
    START = "start"
    END = "end"


class MarkupEvent(NamedTuple):
    """
    One structural event.

    START events carry the element's attributes; END events carry all text
    inside the element, nested elements included, in document order
    (``""`` for an empty element, never None). Depth 0 is the dump root.
    """
    kind: EventKind
    name: str
    depth: int
    attributes: Dict[str, str] = {}
    text: Optional[str] = None


def _local_name(tag: str) -> str:
    if tag[:1] == "{":
        return tag.rsplit("}", 1)[1]
    return tag


def _collapse(elem, text: str) -> None:
    """Replace a finished element's content with its text, keeping the tail"""
    elem.clear(keep_tail=True)
    elem.text = text


def _release(elem) -> None:
    """Drop a finished entity and its already-finished siblings"""
    elem.clear(keep_tail=False)
    parent = elem.getparent()
    if parent is not None:
        while elem.getprevious() is not None:
            del parent[0]


def iter_markup_events(chunks: Iterable[bytes]) -> Iterator[MarkupEvent]:
    """
    Turn a byte stream into a lazy, forward-only sequence of markup events.

    Args:
        chunks: Decompressed bytes in document order

    Raises:
        MalformedInput: Structurally invalid markup
        TruncatedInput: Bytes ran out with elements still open
    """
    parser = etree.XMLPullParser(
        events=("start", "end"),
        huge_tree=True,
        resolve_entities=False,
        no_network=True,
    )
    open_elements: List[str] = []

    def drain() -> Iterator[MarkupEvent]:
        for action, elem in parser.read_events():
            if action == "start":
                name = _local_name(elem.tag)
                yield MarkupEvent(
                    EventKind.START,
                    name,
                    len(open_elements),
                    dict(elem.attrib),
                )
                open_elements.append(name)
            else:
                name = open_elements.pop()
                depth = len(open_elements)
                text = "".join(elem.itertext())
                yield MarkupEvent(EventKind.END, name, depth, text=text)
                if depth > ENTITY_DEPTH:
                    _collapse(elem, text)
                else:
                    _release(elem)

    try:
        for chunk in chunks:
            parser.feed(chunk)
            yield from drain()

        if open_elements:
            raise TruncatedInput(
                "Dump ended with open elements",
                context={"open_elements": "/".join(open_elements)}
            )

        parser.close()
        yield from drain()

    except etree.XMLSyntaxError as e:
        line, column = e.position if e.position else (None, None)
        raise MalformedInput(
            "Invalid markup",
            context={
                "line": line,
                "column": column,
                "open_elements": "/".join(open_elements)
            },
            original_exception=e
        )
