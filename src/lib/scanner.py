"""
Excluded-region scanning

Shared building blocks for finding comments and literals, plus the generic
scan loop that combines a language's matchers into one sorted,
non-overlapping region list.

A region matcher is a plain function ``(source, pos) -> ExcludedRegion | None``.
The scan tries each matcher in priority order at every unvisited position;
the first hit consumes its span and the scan resumes at the region's end.
Unterminated constructs run to end of source rather than failing.

Every helper here is total: offsets are clamped to the source and
out-of-range reads yield the empty string, so no string input raises.

Example:
    >>> matchers = (lineComment_matcher("#"), quotedString_matcher('"'))
    >>> regions_scan('x = "end" # end', matchers)
    [ExcludedRegion(start=4, end=9), ExcludedRegion(start=10, end=15)]
"""

import re
from bisect import bisect_right
from operator import attrgetter
from typing import Iterator, List, Optional, Sequence

from ..models.grammar import RegionMatcher
from ..models.tokens import ExcludedRegion

LINE_BREAKS = "\r\n"
BLANKS = " \t"


def char_get(source: str, index: int) -> str:
    """Character at index, or '' outside the source (negative indices included)."""
    if 0 <= index < len(source):
        return source[index]
    return ""


def region_find(pos: int, regions: Sequence[ExcludedRegion]) -> Optional[ExcludedRegion]:
    """
    Region containing pos, by binary search over regions sorted by start.

    Args:
        pos: Offset to look up
        regions: Sorted, non-overlapping regions

    Returns:
        The containing region, or None
    """
    index = bisect_right(regions, pos, key=attrgetter("start")) - 1
    if index >= 0 and regions[index].contains(pos):
        return regions[index]
    return None


def position_isExcluded(pos: int, regions: Sequence[ExcludedRegion]) -> bool:
    return region_find(pos, regions) is not None


def lineStart_find(source: str, pos: int) -> int:
    """Offset of the first character of the line holding pos."""
    pos = max(0, min(pos, len(source)))
    return max(source.rfind("\n", 0, pos), source.rfind("\r", 0, pos)) + 1


def lineEnd_find(source: str, pos: int) -> int:
    """Offset of the line terminator at or after pos, or len(source)."""
    n = len(source)
    pos = max(0, pos)
    while pos < n and source[pos] not in LINE_BREAKS:
        pos += 1
    return min(pos, n)


def lineBreak_skip(source: str, pos: int) -> int:
    """Offset just past the line terminator at pos (\\r\\n counts as one)."""
    if source.startswith("\r\n", pos):
        return pos + 2
    if pos < len(source):
        return pos + 1
    return len(source)


def position_atLineStart(source: str, pos: int) -> bool:
    return pos == 0 or char_get(source, pos - 1) in ("\n", "\r")


def blankBefore_skip(source: str, pos: int) -> int:
    """Index of the last non-blank character before pos on the same line, or -1."""
    i = pos - 1
    while i >= 0 and source[i] in BLANKS:
        i -= 1
    return i


def blankAfter_skip(source: str, pos: int) -> int:
    """Index of the first non-blank character at or after pos (may be len(source))."""
    n = len(source)
    i = max(0, pos)
    while i < n and source[i] in BLANKS:
        i += 1
    return i


def matches_unexcluded(
    pattern: "re.Pattern[str]", source: str, start: int, end: int, regions: Sequence[ExcludedRegion]
) -> Iterator["re.Match[str]"]:
    """Yield matches of pattern inside source[start:end] that do not start in a region."""
    for match in pattern.finditer(source, max(0, start), max(0, end)):
        if not position_isExcluded(match.start(), regions):
            yield match


def char_findUnexcluded(
    source: str, char: str, start: int, end: int, regions: Sequence[ExcludedRegion], reverse: bool = False
) -> int:
    """Index of char in source[start:end] outside all regions, or -1."""
    start = max(0, start)
    end = min(len(source), end)
    indices = range(end - 1, start - 1, -1) if reverse else range(start, end)
    for i in indices:
        if source[i] == char and not position_isExcluded(i, regions):
            return i
    return -1


# ----------------------------------------------------------------------------
# Primitive matchers
# ----------------------------------------------------------------------------


def lineComment_match(source: str, pos: int) -> ExcludedRegion:
    """Comment from pos up to (not including) the next line terminator."""
    return ExcludedRegion(pos, max(lineEnd_find(source, pos), pos + 1))


def blockComment_match(
    source: str, pos: int, opener: str, closer: str, nested: bool = False
) -> Optional[ExcludedRegion]:
    """
    Block comment starting at pos.

    Args:
        opener / closer: Comment delimiters (e.g. "(*", "*)")
        nested: Count inner openers so each needs its own closer

    Returns:
        Region through the matching closer, to end of source if
        unterminated, or None when pos does not hold the opener
    """
    if not source.startswith(opener, pos):
        return None
    n = len(source)
    depth = 1
    i = pos + len(opener)
    while i < n:
        if nested and source.startswith(opener, i):
            depth += 1
            i += len(opener)
            continue
        if source.startswith(closer, i):
            depth -= 1
            i += len(closer)
            if depth == 0:
                return ExcludedRegion(pos, i)
            continue
        i += 1
    return ExcludedRegion(pos, n)


def quotedString_match(
    source: str,
    pos: int,
    quote: str = "",
    backslash: bool = True,
    doubled: bool = False,
    single_line: bool = False,
) -> ExcludedRegion:
    """
    Quoted literal starting at pos.

    Args:
        quote: Closing quote; defaults to the character at pos
        backslash: Backslash escapes the next character
        doubled: A doubled quote ('' or "") stands for one quote
        single_line: An unterminated literal stops at the line end

    Returns:
        Region through the closing quote, or to the line/source end
    """
    quote = quote or char_get(source, pos)
    n = len(source)
    i = pos + 1
    while i < n:
        ch = source[i]
        if backslash and ch == "\\" and i + 1 < n:
            i += 2
            continue
        if ch == quote:
            if doubled and char_get(source, i + 1) == quote:
                i += 2
                continue
            return ExcludedRegion(pos, i + 1)
        if single_line and ch in LINE_BREAKS:
            return ExcludedRegion(pos, i)
        i += 1
    return ExcludedRegion(pos, max(n, pos + 1))


def tripleString_match(source: str, pos: int, delimiter: str = '"""', backslash: bool = True) -> Optional[ExcludedRegion]:
    """Triple-quoted literal starting at pos, or None if pos holds no delimiter."""
    if not source.startswith(delimiter, pos):
        return None
    n = len(source)
    i = pos + len(delimiter)
    while i < n:
        if backslash and source[i] == "\\" and i + 1 < n:
            i += 2
            continue
        if source.startswith(delimiter, i):
            return ExcludedRegion(pos, i + len(delimiter))
        i += 1
    return ExcludedRegion(pos, n)


# ----------------------------------------------------------------------------
# Matcher factories
# ----------------------------------------------------------------------------


def lineComment_matcher(marker: str) -> RegionMatcher:
    def match(source: str, pos: int) -> Optional[ExcludedRegion]:
        if source.startswith(marker, pos):
            return lineComment_match(source, pos)
        return None

    return match


def blockComment_matcher(opener: str, closer: str, nested: bool = False) -> RegionMatcher:
    def match(source: str, pos: int) -> Optional[ExcludedRegion]:
        return blockComment_match(source, pos, opener, closer, nested)

    return match


def quotedString_matcher(
    quote: str, backslash: bool = True, doubled: bool = False, single_line: bool = False
) -> RegionMatcher:
    def match(source: str, pos: int) -> Optional[ExcludedRegion]:
        if char_get(source, pos) == quote:
            return quotedString_match(source, pos, quote, backslash, doubled, single_line)
        return None

    return match


# ----------------------------------------------------------------------------
# Scan loop
# ----------------------------------------------------------------------------


def _gap_scan(
    source: str, start: int, stop: int, matchers: Sequence[RegionMatcher]
) -> List[ExcludedRegion]:
    """Scan source[start:stop] with matchers, clipping every region at stop."""
    regions: List[ExcludedRegion] = []
    pos = start
    while pos < stop:
        region = _first_match(source, pos, matchers)
        if region is None or region.start != pos:
            pos += 1
            continue
        end = min(region.end, stop)
        if end > pos:
            regions.append(ExcludedRegion(pos, end))
        pos = max(region.end, pos + 1)
    return regions


def _first_match(source: str, pos: int, matchers: Sequence[RegionMatcher]) -> Optional[ExcludedRegion]:
    for matcher in matchers:
        region = matcher(source, pos)
        if region is not None:
            return region
    return None


def regions_scan(source: str, matchers: Sequence[RegionMatcher]) -> List[ExcludedRegion]:
    """
    Run matchers across source and collect excluded regions.

    A matcher may return a region that starts after pos (a heredoc body
    begins on the line after its marker). The rest of the marker line is
    then scanned with the other matchers and clipped to the deferred
    region's start, so the result stays sorted and non-overlapping.

    Args:
        source: Full source text
        matchers: Region matchers in priority order

    Returns:
        Regions sorted by start, non-overlapping, each with end > start
    """
    n = len(source)
    regions: List[ExcludedRegion] = []
    pos = 0
    while pos < n:
        hit = None
        for matcher in matchers:
            region = matcher(source, pos)
            if region is not None:
                hit = (matcher, region)
                break
        if hit is None:
            pos += 1
            continue

        matcher, region = hit
        start = max(region.start, pos)
        end = min(region.end, n)
        if end <= start:
            pos += 1
            continue
        if start > pos:
            others = [other for other in matchers if other is not matcher]
            regions.extend(_gap_scan(source, pos + 1, start, others))
        regions.append(ExcludedRegion(start, end))
        pos = end
    return regions


def word_pattern(words: Sequence[str], word_chars: str = "A-Za-z0-9_", flags: int = 0) -> "re.Pattern[str]":
    """Compile an alternation of words bounded by non-identifier characters."""
    body = "|".join(re.escape(word) for word in sorted(words, key=len, reverse=True))
    return re.compile(rf"(?<![{word_chars}])(?:{body})(?![{word_chars}])", flags)
