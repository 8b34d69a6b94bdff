"""
Tests for decorations, hover resolution, and the in-memory surface.
"""

import pytest

from wordscreen.dictionary import Match
from wordscreen.markers import (
    ADVISORY_MESSAGE,
    HoverResolver,
    MarkerRenderer,
    decoration_class,
    severity_label,
)
from wordscreen.surface import BufferSurface, Decoration, Position, TextSurface


class BareSurface(TextSurface):
    """A surface with none of the optional capabilities."""

    def __init__(self, text=""):
        self.text = text
        self.decorations = None

    def get_text(self):
        return self.text

    def on_change(self, listener):
        return lambda: None

    def set_decorations(self, decorations):
        self.decorations = decorations


# ============================================================
# SURFACE
# ============================================================

class TestBufferSurface:

    def test_single_line_positions(self):
        s = BufferSurface("abc")
        assert s.position_at(0) == Position(1, 1)
        assert s.position_at(3) == Position(1, 4)

    def test_multi_line_positions(self):
        s = BufferSurface("ab\ncd\n\nef")
        assert s.position_at(3) == Position(2, 1)
        assert s.position_at(6) == Position(3, 1)
        assert s.position_at(8) == Position(4, 2)

    def test_offset_round_trip(self):
        s = BufferSurface("ab\ncd\n\nef")
        for offset in range(len(s.get_text()) + 1):
            assert s.offset_at(s.position_at(offset)) == offset

    def test_offset_clamps(self):
        s = BufferSurface("ab\ncd")
        assert s.offset_at(Position(1, 99)) == 2
        assert s.offset_at(Position(99, 1)) == 3
        assert s.position_at(-5) == Position(1, 1)

    def test_change_listeners(self):
        s = BufferSurface("a")
        calls = []
        unsubscribe = s.on_change(lambda: calls.append(s.get_text()))
        s.insert(1, "b")
        s.delete(0, 1)
        unsubscribe()
        s.set_text("zzz")
        assert calls == ["ab", "b"]

    def test_base_class_lacks_conversion(self):
        s = BareSurface("abc")
        with pytest.raises(NotImplementedError):
            s.position_at(0)
        with pytest.raises(NotImplementedError):
            s.register_hover(lambda p: None)


# ============================================================
# RENDERER
# ============================================================

class TestMarkerRenderer:

    def test_one_decoration_per_match(self):
        s = BufferSurface("ab\nxaby")
        matches = [Match("ab", 0, 2, "low"), Match("ab", 4, 6, "low"), Match("b", 5, 6, "high")]
        assert MarkerRenderer().render(matches, s) is True
        assert s.decorations == [
            Decoration(Position(1, 1), Position(1, 3), "low", "sensitive-word-decoration-low"),
            Decoration(Position(2, 2), Position(2, 4), "low", "sensitive-word-decoration-low"),
            Decoration(Position(2, 3), Position(2, 4), "high", "sensitive-word-decoration-high"),
        ]

    def test_clear(self):
        s = BufferSurface("ab")
        renderer = MarkerRenderer()
        renderer.render([Match("ab", 0, 2, "low")], s)
        renderer.clear(s)
        assert s.decorations == []

    def test_surface_without_conversion_is_skipped(self, caplog):
        s = BareSurface("ab")
        assert MarkerRenderer().render([Match("ab", 0, 2, "low")], s) is False
        assert s.decorations is None
        assert "Skipping decorations" in caplog.text

    def test_class_names(self):
        assert decoration_class("medium") == "sensitive-word-decoration-medium"


# ============================================================
# HOVER
# ============================================================

class TestHoverResolver:

    def test_resolves_covering_match(self):
        matches = [Match("暴力", 2, 4, "low")]
        hover = HoverResolver(lambda: matches).resolve(3)
        assert hover.word == "暴力"
        assert hover.severity == "low"
        assert hover.severity_label == "低 (Low)"
        assert hover.message == ADVISORY_MESSAGE

    def test_end_is_exclusive(self):
        matches = [Match("暴力", 2, 4, "low")]
        resolver = HoverResolver(lambda: matches)
        assert resolver.resolve(2) is not None
        assert resolver.resolve(4) is None
        assert resolver.resolve(1) is None

    def test_no_matches(self):
        assert HoverResolver(lambda: []).resolve(0) is None

    def test_longest_match_wins(self):
        matches = [Match("b", 2, 3, "low"), Match("ab", 1, 3, "low"), Match("aby", 1, 4, "medium")]
        assert HoverResolver(lambda: matches).resolve(2).word == "aby"

    def test_equal_length_lowest_start_wins(self):
        matches = [Match("by", 2, 4, "low"), Match("ab", 1, 3, "low")]
        assert HoverResolver(lambda: matches).resolve(2).word == "ab"

    def test_tie_break_ignores_list_order(self):
        matches = [Match("ab", 1, 3, "low"), Match("xab", 0, 3, "medium"), Match("b", 2, 3, "low")]
        forward = HoverResolver(lambda: matches).resolve(2)
        backward = HoverResolver(lambda: list(reversed(matches))).resolve(2)
        assert forward == backward
        assert forward.word == "xab"

    def test_reads_latest_matches(self):
        current = [Match("ab", 0, 2, "low")]
        resolver = HoverResolver(lambda: current)
        current = [Match("cd", 0, 2, "high")]
        assert resolver.resolve(0).word == "cd"

    def test_hover_ranges_from_surface(self):
        s = BufferSurface("x\n暴力")
        resolver = HoverResolver(lambda: [Match("暴力", 2, 4, "low")], s)
        hover = resolver.provide_hover(Position(2, 2))
        assert hover.start == Position(2, 1)
        assert hover.end == Position(2, 3)

    def test_hover_contents(self):
        hover = HoverResolver(lambda: [Match("abcdef", 0, 6, "high")]).resolve(0)
        assert hover.contents == [
            "**🚫 敏感词检测**",
            "词语: `abcdef`",
            "严重程度: 高 (High)",
            "---",
            ADVISORY_MESSAGE,
        ]

    def test_provide_hover_without_conversion(self):
        resolver = HoverResolver(lambda: [Match("ab", 0, 2, "low")], BareSurface("ab"))
        assert resolver.provide_hover(Position(1, 1)) is None

    def test_resolve_without_surface_ranges(self):
        resolver = HoverResolver(lambda: [Match("ab", 0, 2, "low")], BareSurface("ab"))
        hover = resolver.resolve(0)
        assert hover.word == "ab"
        assert hover.start is None

    def test_severity_labels(self):
        assert severity_label("medium") == "中 (Medium)"
        assert severity_label("unknown") == "unknown"
