r"""
Flag grammar for configuration embedded in resource names.

A resource name carries its configuration as ``.``-separated tokens between
the base name and the extension::

    Body.24.outline 2 000000.bg#00000080.ttf
    ^^^^ ^^ ^^^^^^^^^^^^^^^^ ^^^^^^^^^^^^ ^^^
    base  \_______ flags ______________/  extension

Each flag token is classified against a closed registry of shapes. A shape
must match the whole token; tokens matching no shape are inert and simply
ignored by every task that does not care about them.

Scanning policy is "first match wins" (``first_match``) unless a consumer
documents otherwise. The font task resolves its background color with
``last_match``, which keeps scanning and overwrites with every later hit.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .errors import FlagError

FLAG_DELIMITER = "."

COLOR_PATTERN = "([0-9A-Fa-f]{3,8})"


@dataclass(frozen=True)
class Color:
    """RGBA color with 8-bit channels."""
    r: int
    g: int
    b: int
    a: int = 255

    @property
    def rgba(self) -> Tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)

    def to_hex(self) -> str:
        return "%02X%02X%02X%02X" % self.rgba


WHITE = Color(255, 255, 255, 255)
TRANSPARENT = Color(0, 0, 0, 0)


class OutlineJoin(Enum):
    """Join style of glyph outlines."""
    ROUND = "round"
    STRAIGHT = "straight"


@dataclass(frozen=True)
class Outline:
    """Outline configuration parsed from an ``outline`` flag."""
    width: int
    color: Color
    join: OutlineJoin = OutlineJoin.ROUND


@dataclass(frozen=True)
class ParsedName:
    """A resource name split into its clean parts and flags."""
    base: str
    flags: Tuple[str, ...] = field(default_factory=tuple)
    extension: Optional[str] = None

    @property
    def clean_name(self) -> str:
        if self.extension is None:
            return self.base
        return f"{self.base}{FLAG_DELIMITER}{self.extension}"


def parse_hex_color(hex_digits: str) -> Color:
    """
    Parse a hex color of 3, 4, 6 or 8 digits.

    Short forms double every digit (``F80`` is ``FF8800``). Alpha is fully
    opaque when the form does not carry it.

    Raises:
        FlagError: If the digit count is not one of the accepted forms
    """
    digits = hex_digits.strip()
    if not re.fullmatch(r"[0-9A-Fa-f]+", digits):
        raise FlagError("color must be hexadecimal", hex_digits)

    if len(digits) in (3, 4):
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) == 6:
        digits += "FF"
    if len(digits) != 8:
        raise FlagError("color must have 3, 4, 6 or 8 hex digits", hex_digits)

    return Color(*(int(digits[i:i + 2], 16) for i in range(0, 8, 2)))


def split_name(name: str, is_directory: bool = False) -> ParsedName:
    """
    Split a resource name into base name, flags and extension.

    Files keep their last token as the extension; directories have none.
    Leading dots (hidden entries) belong to the base name.
    """
    stripped = name.lstrip(FLAG_DELIMITER)
    prefix = name[:len(name) - len(stripped)]
    tokens = stripped.split(FLAG_DELIMITER)
    tokens[0] = prefix + tokens[0]

    extension = None
    if not is_directory and len(tokens) > 1:
        extension = tokens.pop()

    return ParsedName(base=tokens[0], flags=tuple(tokens[1:]), extension=extension)


def compose_name(base: str, flags: Sequence[str] = (), extension: Optional[str] = None) -> str:
    """Inverse of ``split_name``."""
    tokens = [base, *flags]
    if extension is not None:
        tokens.append(extension)
    return FLAG_DELIMITER.join(tokens)


class FlagShape(Enum):
    """Recognized flag shapes."""
    SIZE = "size"
    RANGE = "range"
    DIMENSIONS = "dimensions"
    BACKGROUND = "background"
    FOREGROUND = "foreground"
    OUTLINE = "outline"


@dataclass(frozen=True)
class FlagPattern:
    """A whole-token pattern and the converter for its groups."""
    regex: "re.Pattern[str]"
    convert: Callable[..., Any]
    example: str

    def match(self, token: str) -> Optional[Any]:
        found = self.regex.fullmatch(token)
        if found is None:
            return None
        return self.convert(*found.groups())


def _outline(width: str, hex_color: str, join: Optional[str]) -> Outline:
    straight = join is not None and join.lower() == OutlineJoin.STRAIGHT.value
    return Outline(
        width=int(width),
        color=parse_hex_color(hex_color),
        join=OutlineJoin.STRAIGHT if straight else OutlineJoin.ROUND,
    )


FLAG_SHAPES: Dict[FlagShape, FlagPattern] = {
    FlagShape.SIZE: FlagPattern(re.compile(r"(\d+)"), int, "14"),
    FlagShape.RANGE: FlagPattern(
        re.compile(r"(\d+)-(\d+)"),
        lambda start, end: (int(start), int(end)),
        "65-90",
    ),
    FlagShape.DIMENSIONS: FlagPattern(
        re.compile(r"(\d+)x(\d+)"),
        lambda width, height: (int(width), int(height)),
        "64x32",
    ),
    FlagShape.BACKGROUND: FlagPattern(re.compile(rf"bg#{COLOR_PATTERN}"), parse_hex_color, "bg#000000FF"),
    FlagShape.FOREGROUND: FlagPattern(re.compile(rf"fg#{COLOR_PATTERN}"), parse_hex_color, "fg#FFFFFF"),
    FlagShape.OUTLINE: FlagPattern(
        re.compile(rf"outline (\d+) {COLOR_PATTERN} ?(\w+)?"),
        _outline,
        "outline 2 000000 straight",
    ),
}


def match(shape: FlagShape, token: str) -> Optional[Any]:
    """
    Match a single token against one shape.

    Returns:
        The typed parameter for the shape, or None when the token does not
        conform to the shape as a whole

    Raises:
        FlagError: If the token has the shape but carries an invalid value
    """
    return FLAG_SHAPES[shape].match(token)


def all_matches(shape: FlagShape, flags: Sequence[str]) -> List[Any]:
    """Every parameter of the given shape, in flag order."""
    results = []
    for token in flags:
        value = match(shape, token)
        if value is not None:
            results.append(value)
    return results


def first_match(shape: FlagShape, flags: Sequence[str]) -> Optional[Any]:
    """First parameter of the given shape, later ones are not examined."""
    for token in flags:
        value = match(shape, token)
        if value is not None:
            return value
    return None


def last_match(shape: FlagShape, flags: Sequence[str]) -> Optional[Any]:
    """Last parameter of the given shape; every token is examined."""
    result = None
    for token in flags:
        value = match(shape, token)
        if value is not None:
            result = value
    return result


def matching_tokens(shape: FlagShape, flags: Sequence[str]) -> List[str]:
    """Raw tokens conforming to a shape, without converting their values."""
    pattern = FLAG_SHAPES[shape].regex
    return [token for token in flags if pattern.fullmatch(token)]


def has_keyword(flags: Sequence[str], keyword: str) -> bool:
    """Check for a bare keyword flag such as ``pack`` or ``ignore``."""
    return keyword in flags


def classify(token: str) -> List[FlagShape]:
    """List every shape a token conforms to, ignoring invalid values."""
    shapes = []
    for shape, pattern in FLAG_SHAPES.items():
        if pattern.regex.fullmatch(token):
            shapes.append(shape)
    return shapes
