"""
Parsing of the ``entries_header`` domain annotation.

Observed formats::

    PF03245(27...149)
    PF00704(34...320,355...427)

The separator between start and end is usually ``...`` but single dots
and dashes also appear in the data.
"""
import math
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

_DOMAIN = re.compile(r"([A-Z0-9]+)\(([^)]+)\)")
_RANGE = re.compile(r"(\d+)[.\-]+(\d+)")


@dataclass(frozen=True)
class SingleRange:
    code: str
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class MultiRange:
    code: str
    ranges: Tuple[Tuple[int, int], ...]

    @property
    def start(self) -> int:
        return min(start for start, _ in self.ranges)

    @property
    def end(self) -> int:
        return max(end for _, end in self.ranges)


@dataclass(frozen=True)
class Unparsed:
    raw: Optional[str]


DomainAnnotation = Union[SingleRange, MultiRange, Unparsed]


def parse_domain_header(header: Optional[str]) -> DomainAnnotation:
    if not header or not isinstance(header, str):
        return Unparsed(header)

    match = _DOMAIN.search(header)
    if match is None:
        return Unparsed(header)

    code, body = match.group(1), match.group(2)
    ranges = tuple((int(start), int(end)) for start, end in _RANGE.findall(body))
    if not ranges:
        return Unparsed(header)
    if len(ranges) == 1:
        start, end = ranges[0]
        return SingleRange(code, start, end)
    return MultiRange(code, ranges)


def domain_bounds(headers: Iterable[Optional[str]], default: Tuple[int, int] = (0, 200)) -> Tuple[int, int]:
    """Axis bounds for drawing every domain on a result page"""
    starts, ends = [], []
    for header in headers:
        annotation = parse_domain_header(header)
        if isinstance(annotation, (SingleRange, MultiRange)):
            starts.append(annotation.start)
            ends.append(annotation.end)

    if not starts:
        return default

    low, high = min(starts), max(ends)
    padding = max(10, (high - low) * 0.1)
    return math.floor(max(0, low - padding)), math.ceil(high + padding)
