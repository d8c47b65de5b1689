"""SVG path text of a single cubic Bezier curve"""

from __future__ import annotations

import itertools
import re
from typing import ClassVar, Iterator, List, Optional, Sequence, Tuple

from curvekit.common import CurveCmds, CurveFormatError

CurveValues = Tuple[float, float, float, float, float, float, float, float]

# "M x y C x y x y x y"
_CURVE_TOKEN_COUNT = 10


class CurveSvgPath:
    """
    Static methods converting a cubic Bezier curve from and to SVG-path-like text:
        "M sx sy C c0x c0y, c1x c1y, ex ey"
    Numbers use the locale independent shortest round-trip representation.
    Tokens (command letter : number of values):
        MoveTo:       2: Mm
        CubicBezier:  6: Cc
    Command letters are case insensitive; all coordinates are absolute.
    Commas and whitespace separate numbers, a "-" starts a new number unless it
    follows an exponent marker.
    """

    # Command letters:
    SVG_CMDS: ClassVar[str] = "MmCc"
    # Definition of a number:
    SVG_ARGS: ClassVar[str] = r"[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?"
    # One token per match: number | letter | separators | anything else
    _TOKEN_RE: ClassVar["re.Pattern[str]"] = re.compile(rf"({SVG_ARGS})|([A-Za-z])|([,\s]+)|(.)")

    @staticmethod
    def format_number(value: float) -> str:
        """Shortest text that parses back to the same float."""
        return repr(float(value))

    @staticmethod
    def format_curve(values: Sequence[float]) -> str:
        """
        Format the eight coordinates (sx, sy, c0x, c0y, c1x, c1y, ex, ey) as curve text.

        Args:
            values (Sequence[float]): start, control 0, control 1 and end coordinates

        Returns:
            str: "M sx sy C c0x c0y, c1x c1y, ex ey"
        """
        f = [CurveSvgPath.format_number(v) for v in values]
        return f"M {f[0]} {f[1]} C {f[2]} {f[3]}, {f[4]} {f[5]}, {f[6]} {f[7]}"

    @staticmethod
    def iter_tokens(text: str) -> Iterator[str]:
        """
        Yield the command letters and number strings of _text_ one by one.

        Raises:
            CurveFormatError: On reaching a character that is neither part of a
                number, a letter nor a separator.
        """
        for match in CurveSvgPath._TOKEN_RE.finditer(text):
            number, letter, _separator, other = match.groups()
            if number is not None:
                yield number
            elif letter is not None:
                yield letter
            elif other is not None:
                raise CurveFormatError(f"Unexpected character {other!r} at position {match.start()} in {text!r}.")

    @staticmethod
    def tokenize(text: str) -> List[str]:
        """
        Split _text_ into command letters and number strings.

        Raises:
            CurveFormatError: On characters that are neither part of a number,
                a letter nor a separator.
        """
        return list(CurveSvgPath.iter_tokens(text))

    @staticmethod
    def parse_curve_values(text: str) -> CurveValues:
        """
        Parse curve text into the eight coordinates.

        Command letters are case insensitive and all coordinates are absolute.
        Only the ten tokens "M x y C x y x y x y" are read; anything after
        them is ignored.

        Raises:
            CurveFormatError: If _text_ is empty or misses a command or a number.
        """
        if text is None or not text.strip():
            raise CurveFormatError("Unable to parse Bezier curve SVG path data: empty input.")

        tokens = list(itertools.islice(CurveSvgPath.iter_tokens(text), _CURVE_TOKEN_COUNT))

        def expect_command(index: int, letter: CurveCmds) -> None:
            if index >= len(tokens) or tokens[index].upper() != letter:
                found = tokens[index] if index < len(tokens) else "end of input"
                raise CurveFormatError(f"Expected command '{letter}' but found '{found}' in {text!r}.")

        def read_numbers(index: int, count: int) -> List[float]:
            chunk = tokens[index : index + count]
            if len(chunk) < count or any(tok.isalpha() for tok in chunk):
                raise CurveFormatError(f"Expected {count} numbers after token {index - 1} in {text!r}.")
            return [float(tok) for tok in chunk]

        expect_command(0, "M")
        sx, sy = read_numbers(1, 2)
        expect_command(3, "C")
        c0x, c0y, c1x, c1y, ex, ey = read_numbers(4, 6)
        return (sx, sy, c0x, c0y, c1x, c1y, ex, ey)

    @staticmethod
    def try_parse_curve_values(text: Optional[str]) -> Optional[CurveValues]:
        """Like parse_curve_values() but returns None instead of raising."""
        if text is None:
            return None
        try:
            return CurveSvgPath.parse_curve_values(text)
        except CurveFormatError:
            return None
