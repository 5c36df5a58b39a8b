"""Position-tracking tag lexer for live document text."""
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

_WHITESPACE = " \t\r\n"
_NAME_STOP = _WHITESPACE + "/>"


class TagKind(Enum):
    OPEN = "open"
    CLOSE = "close"
    SELF_CLOSING = "self_closing"


@dataclass(frozen=True)
class TagToken:
    """One start, end or empty-element tag."""
    kind: TagKind
    name: str
    line: int
    column: int
    attr_text: str = ""
    attr_offset: int = 0


@dataclass(frozen=True)
class AttributeToken:
    """One attribute of a tag; ``value`` is None when no value was given."""
    name: str
    value: Optional[str]
    line: int
    column: int


@dataclass(frozen=True)
class TagProblem:
    """Tag balance problem found outside the structural pass."""
    message: str
    line: int
    column: int


def is_name_start(char: str) -> bool:
    """True if ``char`` can begin an element name."""
    return char.isalpha() or char in "_:" or ord(char) >= 0xC0


class LineIndex:
    """Offset to 1-based line/column conversion."""

    def __init__(self, text: str):
        self._starts = [0]
        position = text.find("\n")
        while position != -1:
            self._starts.append(position + 1)
            position = text.find("\n", position + 1)

    def locate(self, offset: int) -> Tuple[int, int]:
        line = bisect_right(self._starts, offset)
        return line, offset - self._starts[line - 1] + 1


class TagLexer:
    """
    Scans markup into tag tokens.

    Processing instructions, comments, CDATA sections and document type
    declarations (internal subset included) are skipped. Quoted attribute
    values may contain ``>`` and span lines. A ``<`` that cannot start any
    markup is passed over as character data.
    """

    def __init__(self, text: str):
        self.text = text
        self.index = LineIndex(text)

    def _skip_past(self, terminator: str, start: int) -> int:
        end = self.text.find(terminator, start)
        return len(self.text) if end == -1 else end + len(terminator)

    def _skip_declaration(self, start: int) -> int:
        """Skip ``<!...>`` honouring quotes and an internal subset."""
        text = self.text
        depth = 0
        quote = None
        position = start + 2
        while position < len(text):
            char = text[position]
            if quote:
                if char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
            elif char == "[":
                depth += 1
            elif char == "]":
                depth -= 1
            elif char == ">" and depth <= 0:
                return position + 1
            position += 1
        return len(text)

    def _tag_end(self, start: int) -> int:
        """Offset of the ``>`` closing a tag, skipping quoted values; -1 if none."""
        text = self.text
        quote = None
        position = start
        while position < len(text):
            char = text[position]
            if quote:
                if char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
            elif char == ">":
                return position
            position += 1
        return -1

    def _read_name(self, start: int) -> int:
        position = start
        while position < len(self.text) and self.text[position] not in _NAME_STOP:
            position += 1
        return position

    def tokens(self) -> Iterator[TagToken]:
        text = self.text
        position = text.find("<")
        while position != -1:
            if text.startswith("<!--", position):
                position = self._skip_past("-->", position + 4)
            elif text.startswith("<![CDATA[", position):
                position = self._skip_past("]]>", position + 9)
            elif text.startswith("<?", position):
                position = self._skip_past("?>", position + 2)
            elif text.startswith("<!", position):
                position = self._skip_declaration(position)
            elif text.startswith("</", position):
                name_end = self._read_name(position + 2)
                end = self._tag_end(name_end)
                if name_end > position + 2:
                    line, column = self.index.locate(position)
                    yield TagToken(TagKind.CLOSE, text[position + 2:name_end], line, column)
                position = len(text) if end == -1 else end + 1
            elif position + 1 < len(text) and is_name_start(text[position + 1]):
                name_end = self._read_name(position + 1)
                end = self._tag_end(name_end)
                if end == -1:
                    end = len(text)
                body = text[name_end:end]
                self_closing = body.rstrip().endswith("/")
                if self_closing:
                    body = body.rstrip()[:-1]
                line, column = self.index.locate(position)
                yield TagToken(
                    kind=TagKind.SELF_CLOSING if self_closing else TagKind.OPEN,
                    name=text[position + 1:name_end],
                    line=line,
                    column=column,
                    attr_text=body,
                    attr_offset=name_end,
                )
                position = end + 1
            else:
                position += 1
            position = text.find("<", position)

    def attributes(self, token: TagToken) -> List[AttributeToken]:
        return parse_attributes(token.attr_text, token.attr_offset, self.index)


def parse_attributes(attr_text: str, offset: int = 0,
                     index: Optional[LineIndex] = None) -> List[AttributeToken]:
    """
    Split a raw attribute substring into attribute tokens.

    Args:
        attr_text: Text between the tag name and the closing ``>``
        offset: Offset of ``attr_text`` in the whole document
        index: Line index of the whole document; positions are relative
            to ``attr_text`` when omitted

    Returns:
        List[AttributeToken]: In document order
    """
    if index is None:
        index = LineIndex(attr_text)
        offset = 0
    result = []
    position = 0
    length = len(attr_text)

    while position < length:
        while position < length and attr_text[position] in _WHITESPACE + "/":
            position += 1
        if position >= length:
            break

        name_start = position
        while position < length and attr_text[position] not in _WHITESPACE + "=/":
            position += 1
        name = attr_text[name_start:position]

        while position < length and attr_text[position] in _WHITESPACE:
            position += 1

        value = None
        if position < length and attr_text[position] == "=":
            position += 1
            while position < length and attr_text[position] in _WHITESPACE:
                position += 1
            if position < length and attr_text[position] in "\"'":
                quote = attr_text[position]
                closing = attr_text.find(quote, position + 1)
                if closing == -1:
                    closing = length
                value = attr_text[position + 1:closing]
                position = closing + 1
            else:
                value_start = position
                while position < length and attr_text[position] not in _WHITESPACE:
                    position += 1
                value = attr_text[value_start:position]

        if name:
            line, column = index.locate(offset + name_start)
            result.append(AttributeToken(name, value, line, column))
        else:
            position += 1

    return result


def find_malformed_tag_start(text: str) -> Optional[Tuple[int, int]]:
    """Position of the first ``<`` that cannot start markup, outside comments and CDATA."""
    position = text.find("<")
    while position != -1:
        if text.startswith("<!--", position):
            end = text.find("-->", position + 4)
            if end == -1:
                return None
            position = end + 3
        elif text.startswith("<![CDATA[", position):
            end = text.find("]]>", position + 9)
            if end == -1:
                return None
            position = end + 3
        else:
            following = text[position + 1:position + 2]
            if not following or not (following in "?!/" or is_name_start(following)):
                return LineIndex(text).locate(position)
            position += 1
        position = text.find("<", position)
    return None


def find_tag_mismatch(text: str) -> Optional[TagProblem]:
    """First orphan closing tag, else the earliest unclosed opening tag."""
    open_tags: Dict[str, List[TagToken]] = {}
    orphans: List[TagToken] = []

    for token in TagLexer(text).tokens():
        if token.kind == TagKind.OPEN:
            open_tags.setdefault(token.name, []).append(token)
        elif token.kind == TagKind.CLOSE:
            stack = open_tags.get(token.name)
            if stack:
                stack.pop()
            else:
                orphans.append(token)

    if orphans:
        orphan = orphans[0]
        return TagProblem(
            f"Orphan closing tag </{orphan.name}> without matching opening tag",
            orphan.line, orphan.column,
        )

    unclosed = [stack[0] for stack in open_tags.values() if stack]
    if unclosed:
        first = min(unclosed, key=lambda t: (t.line, t.column))
        return TagProblem(f"Unclosed tag <{first.name}>", first.line, first.column)

    return None
