"""
Excluded-region scanner tests

Shared matchers, the generic scan loop and its deferred-region handling.
"""

from blockmatch.lib.scanner import (
    blankBefore_skip,
    blockComment_match,
    char_findUnexcluded,
    char_get,
    lineComment_matcher,
    lineEnd_find,
    lineStart_find,
    position_isExcluded,
    quotedString_match,
    quotedString_matcher,
    region_find,
    regions_scan,
    tripleString_match,
)
from blockmatch.models.tokens import ExcludedRegion


class TestHelpers:
    """Test the total, clamping helpers"""

    def test_char_get_out_of_range(self):
        """Reads outside the source yield the empty string"""
        assert char_get("abc", -1) == ""
        assert char_get("abc", 3) == ""
        assert char_get("abc", 1) == "b"

    def test_line_bounds(self):
        """Line start and end respect every terminator style"""
        source = "ab\r\ncd\ref"
        assert lineStart_find(source, 5) == 4
        assert lineEnd_find(source, 4) == 6
        assert lineStart_find(source, 7) == 7
        assert lineEnd_find(source, 7) == len(source)

    def test_blank_before_stops_at_line(self):
        """Only blanks on the same line are skipped"""
        assert blankBefore_skip("x  y", 3) == 0
        assert blankBefore_skip("   y", 3) == -1

    def test_region_lookup(self):
        """Binary search finds the containing region only"""
        regions = [ExcludedRegion(2, 4), ExcludedRegion(8, 10)]
        assert region_find(3, regions) == ExcludedRegion(2, 4)
        assert region_find(4, regions) is None
        assert position_isExcluded(9, regions)
        assert not position_isExcluded(0, regions)
        assert not position_isExcluded(5, [])

    def test_char_find_skips_regions(self):
        """Characters inside regions are not found"""
        source = 'a;";";b'
        regions = [ExcludedRegion(2, 5)]
        assert char_findUnexcluded(source, ";", 0, len(source), regions) == 1
        assert char_findUnexcluded(source, ";", 2, len(source), regions) == 5
        assert char_findUnexcluded(source, ";", 0, len(source), regions, reverse=True) == 5
        assert char_findUnexcluded(source, "z", 0, len(source), regions) == -1


class TestPrimitiveMatchers:
    """Test the reusable comment and literal matchers"""

    def test_backslash_escape(self):
        """An escaped quote does not close the string"""
        assert quotedString_match(r'"a\"b" x', 0) == ExcludedRegion(0, 6)

    def test_doubled_quote(self):
        """A doubled quote stands for one quote"""
        source = "'it''s' x"
        assert quotedString_match(source, 0, backslash=False, doubled=True) == ExcludedRegion(0, 7)

    def test_unterminated_string_runs_to_end(self):
        """Unterminated literals run to end of source"""
        assert quotedString_match('"abc', 0) == ExcludedRegion(0, 4)

    def test_single_line_string_stops_at_break(self):
        """Single-line literals stop at the line end"""
        assert quotedString_match("'abc\nend", 0, single_line=True) == ExcludedRegion(0, 4)

    def test_nested_block_comment(self):
        """Nested comments need one closer per opener"""
        source = "(* a (* b *) c *) x"
        assert blockComment_match(source, 0, "(*", "*)", nested=True) == ExcludedRegion(0, 17)
        assert blockComment_match(source, 0, "(*", "*)") == ExcludedRegion(0, 12)

    def test_block_comment_needs_opener(self):
        """No opener at pos means no region"""
        assert blockComment_match("x (* *)", 0, "(*", "*)") is None

    def test_triple_string(self):
        """Triple-quoted strings may hold single quotes and line breaks"""
        source = '"""a "b"\nc""" end'
        assert tripleString_match(source, 0) == ExcludedRegion(0, 13)
        assert tripleString_match(source, 1) is None


class TestRegionsScan:
    """Test the scan loop that combines matchers"""

    def test_comment_and_string(self):
        """Each matcher contributes its own region"""
        matchers = (lineComment_matcher("#"), quotedString_matcher('"'))
        assert regions_scan('x = "end" # end', matchers) == [
            ExcludedRegion(4, 9),
            ExcludedRegion(10, 15),
        ]

    def test_priority_order(self):
        """The first matcher to hit at a position wins"""
        matchers = (lineComment_matcher("#"), quotedString_matcher('"'))
        assert regions_scan('# "x\n"y"', matchers) == [ExcludedRegion(0, 4), ExcludedRegion(5, 8)]

    def test_empty_source(self):
        """Empty input has no regions"""
        assert regions_scan("", (lineComment_matcher("#"),)) == []

    def test_deferred_region(self):
        """A region starting after pos leaves the rest of the line to other matchers"""

        def body_next_line(source, pos):
            if source.startswith("<<", pos):
                start = source.index("\n", pos) + 1
                return ExcludedRegion(start, len(source))
            return None

        source = '<< "s"\nbody'
        regions = regions_scan(source, (body_next_line, quotedString_matcher('"')))
        assert regions == [ExcludedRegion(3, 6), ExcludedRegion(7, 11)]

    def test_regions_sorted_and_disjoint(self):
        """Scan output is sorted and never overlaps"""
        matchers = (lineComment_matcher("--"), quotedString_matcher("'"))
        regions = regions_scan("a 'b' -- c\n'd -- e' f -- 'g", matchers)
        for left, right in zip(regions, regions[1:]):
            assert left.end <= right.start
        assert all(region.end > region.start for region in regions)
