"""
Test suite for script_segmenter.py

Data-driven tests for script classification, punctuation pairing and
segmentation.

Run with: python -m pytest mlwrap/script_segmenter -v
"""

import unittest

from ..config import DEFAULT_SCRIPT_RANGES, WrapperConfig
from .script_segmenter import (
    PairTracker,
    ScriptClassifier,
    ScriptSegmenter,
    Segment,
    SegmentResult,
    is_whitespace_or_punctuation,
    segment_text,
)


# =============================================================================
# TEST DATA TABLES
# =============================================================================

# Character classification: (char, expected_script, description)
CLASSIFICATION_CASES = [
    ("A", "latin", "ASCII uppercase"),
    ("z", "latin", "ASCII lowercase"),
    ("é", "latin", "Latin-1 accented"),
    ("ő", "latin", "Latin Extended-A"),
    ("ạ", "latin", "Latin Extended Additional"),
    ("가", "korean", "Hangul syllable"),
    ("ㄱ", "korean", "Compatibility jamo"),
    ("あ", "japanese", "Hiragana"),
    ("ア", "japanese", "Katakana"),
    ("ー", "japanese", "Katakana prolonged sound mark"),
    ("中", "chinese", "CJK unified ideograph"),
    ("𠀀", "chinese", "CJK Extension B (astral)"),
    ("ب", "arabic", "Arabic letter"),
    ("Ж", "cyrillic", "Cyrillic letter"),
    ("Ω", "greek", "Greek letter"),
    ("א", "hebrew", "Hebrew letter"),
    ("ก", "thai", "Thai letter"),
    ("क", "devanagari", "Devanagari letter"),
    # Not covered by any range
    ("5", "latin", "Digit"),
    ("$", "latin", "Currency symbol"),
    ("!", "latin", "ASCII punctuation"),
    ("。", "latin", "CJK full stop"),
    ("😀", "latin", "Emoji"),
    (" ", "latin", "Space"),
]

# Segmentation with default config: (text, [(segment_text, script)], description)
SEGMENTATION_CASES = [
    (
        "Hello 안녕하세요 world",
        [("Hello ", "latin"), ("안녕하세요 ", "korean"), ("world", "latin")],
        "Whitespace stays with the preceding run",
    ),
    (
        "price: $5 (오천원)",
        [("price: $5 ", "latin"), ("(오천원)", "korean")],
        "Parenthesized Korean forms one segment with its parentheses",
    ),
    ("(한글)", [("(한글)", "korean")], "Parentheses follow enclosed text"),
    (
        "안녕 (hello) 세상",
        [("안녕 ", "korean"), ("(hello)", "latin"), (" 세상", "korean")],
        "Latin in parentheses inside Korean",
    ),
    (
        "「東京」タワー",
        [("「東京」", "chinese"), ("タワー", "japanese")],
        "CJK brackets close before a script change",
    ),
    (
        "He said “안녕” to me",
        [("He said ", "latin"), ("“안녕”", "korean"), (" to me", "latin")],
        "Curly quotes glued to quoted Korean",
    ),
    (
        'Say "안녕" now',
        [("Say ", "latin"), ('"안녕"', "korean"), (" now", "latin")],
        "Straight quotes pair with the same glyph",
    ),
    (
        "[a (한글) b]",
        [("[a ", "latin"), ("(한글)", "korean"), (" b]", "latin")],
        "Nested pairs of different types",
    ),
    (
        "안녕) world",
        [("안녕)", "korean"), (" world", "latin")],
        "Unmatched closer uses context",
    ),
    (
        "Hello (안녕",
        [("Hello (", "latin"), ("안녕", "korean")],
        "Unbalanced opener uses context",
    ),
    ("2024년", [("2024", "latin"), ("년", "korean")], "Digits default to latin"),
    ("こんにちは世界", [("こんにちは", "japanese"), ("世界", "chinese")], "Kana then Han"),
    ("Привет, мир!", [("Привет, мир!", "cyrillic")], "Punctuation inside one script"),
    (
        "It's 한국's economy",
        [("It's ", "latin"), ("한국'", "korean"), ("s economy", "latin")],
        "Apostrophes inside words are not quotes",
    ),
    (
        "'It's 한국'",
        [("'It's ", "latin"), ("한국", "korean"), ("'", "latin")],
        "Quote closer follows its opener past an apostrophe",
    ),
    ("... 안녕", [("... 안녕", "korean")], "Leading punctuation joins first run"),
    ("...", [("...", "latin")], "Punctuation only defaults to latin"),
]

# Reconstruction: segments joined must equal the input
RECONSTRUCTION_CASES = [
    "Hello 안녕하세요 world",
    "  leading and trailing 한글  ",
    "(한글) world",
    "I love 日本 and 한국!",
    "مرحبا Hello עולם שלום",
    "Γειά σου κόσμε, ok? สวัสดี नमस्ते",
    "『引用』と「括弧」(mixed) [네]",
    "Hello 😀 world",
    "a\n\n안녕\tb",
]


# =============================================================================
# CLASSIFIER TESTS
# =============================================================================


class TestScriptClassifier(unittest.TestCase):
    """Test per-character script detection."""

    @classmethod
    def setUpClass(cls):
        cls.classifier = ScriptClassifier(DEFAULT_SCRIPT_RANGES)

    def test_classification(self):
        """Characters map to the expected scripts."""
        for char, expected, desc in CLASSIFICATION_CASES:
            with self.subTest(desc=desc, char=char):
                self.assertEqual(self.classifier.detect_script(char), expected)

    def test_range_boundaries(self):
        """Both ends of every configured interval belong to its script."""
        for script, ranges in DEFAULT_SCRIPT_RANGES.items():
            for start, end in ranges:
                with self.subTest(script=script, start=hex(start), end=hex(end)):
                    self.assertEqual(self.classifier.detect_script(chr(start)), script)
                    self.assertEqual(self.classifier.detect_script(chr(end)), script)

    def test_empty_string_defaults_to_latin(self):
        self.assertEqual(self.classifier.detect_script(""), "latin")

    def test_glyph_override_wins(self):
        """Every character of an override key is forced to the script."""
        classifier = ScriptClassifier(DEFAULT_SCRIPT_RANGES, {"()[]": "korean", "A": "greek"})
        for char in "()[]":
            with self.subTest(char=char):
                self.assertEqual(classifier.detect_script(char), "korean")
        self.assertEqual(classifier.detect_script("A"), "greek")
        self.assertEqual(classifier.detect_script("B"), "latin")

    def test_conflicting_ranges_use_configured_order(self):
        """With overlapping ranges the first script in order wins."""
        first = ScriptClassifier({"alpha": ((0x41, 0x5A),), "beta": ((0x41, 0x5A),)})
        second = ScriptClassifier({"beta": ((0x41, 0x5A),), "alpha": ((0x41, 0x5A),)})
        self.assertEqual(first.detect_script("Q"), "alpha")
        self.assertEqual(second.detect_script("Q"), "beta")

    def test_debug_fallback_logs(self):
        """Debug mode reports characters that fall back to latin."""
        classifier = ScriptClassifier(DEFAULT_SCRIPT_RANGES, debug=True)
        with self.assertLogs("mlwrap.script_segmenter.script_segmenter", level="DEBUG") as logs:
            self.assertEqual(classifier.detect_script("Ա"), "latin")
        self.assertIn("Armenian", logs.output[0])

    def test_whitespace_or_punctuation(self):
        for char in " \t\n.,!?()「」“”":
            with self.subTest(char=char):
                self.assertTrue(is_whitespace_or_punctuation(char))
        for char in "a가5$+<":
            with self.subTest(char=char):
                self.assertFalse(is_whitespace_or_punctuation(char))


# =============================================================================
# PAIRING TESTS
# =============================================================================


class TestPairTracker(unittest.TestCase):
    """Test opener/closer matching."""

    def test_pop_nearest_matching_opener(self):
        """A closer removes its own opener even when it is not on top."""
        tracker = PairTracker()
        tracker.push("(", "korean", 0)
        tracker.push("[", "latin", 3)
        self.assertEqual(tracker.pop_match(")"), "korean")
        self.assertEqual([entry.char for entry in tracker.stack], ["["])

    def test_pop_without_opener(self):
        tracker = PairTracker()
        self.assertIsNone(tracker.pop_match("」"))

    def test_same_type_is_lifo(self):
        tracker = PairTracker()
        tracker.push("(", "latin", 0)
        tracker.push("(", "korean", 1)
        self.assertEqual(tracker.pop_match(")"), "korean")
        self.assertEqual(tracker.pop_match(")"), "latin")

    def test_symmetric_quote_closes_only_when_open(self):
        tracker = PairTracker()
        self.assertFalse(tracker.is_closing('"'))
        tracker.push('"', "latin", 0)
        self.assertTrue(tracker.is_closing('"'))
        self.assertTrue(tracker.is_closing(")"))
        self.assertFalse(tracker.is_closing("("))

    def test_match_closers(self):
        tracker = PairTracker()
        cases = [
            ("((a))", {0: 4, 1: 3}, "Same type nests"),
            ("(a", {}, "Unbalanced opener"),
            ("a) (b", {}, "Closer before opener"),
            ("[(a])", {0: 3, 1: 4}, "Types match independently"),
            ('"a" "b"', {0: 2, 4: 6}, "Straight quotes pair in order"),
            ("'It's'", {0: 5}, "Apostrophe inside a word is skipped"),
        ]
        for text, expected, desc in cases:
            with self.subTest(desc=desc):
                self.assertEqual(tracker.match_closers(text), expected)

    def test_is_apostrophe(self):
        cases = [
            ("It's", 2, True),
            ("l’eau", 1, True),
            ("한국's", 2, True),
            ("'quoted'", 0, False),
            ("'quoted'", 7, False),
            ("rock 'n", 5, False),
            ("a(b", 1, False),
        ]
        for text, position, expected in cases:
            with self.subTest(text=text, position=position):
                self.assertEqual(PairTracker.is_apostrophe(text, position), expected)


# =============================================================================
# SEGMENTATION TESTS
# =============================================================================


class TestSegmentation(unittest.TestCase):
    """Test the segmentation state machine with default config."""

    @classmethod
    def setUpClass(cls):
        cls.segmenter = ScriptSegmenter()

    def test_segmentation_cases(self):
        """Texts split into the expected script runs."""
        for text, expected, desc in SEGMENTATION_CASES:
            with self.subTest(desc=desc, text=text):
                result = self.segmenter.segment(text)
                found = [(seg.text, seg.script) for seg in result.segments]
                self.assertEqual(found, expected, f"{desc}: got {found}")

    def test_segments_reconstruct_original(self):
        """Joined segments equal the input."""
        for text in RECONSTRUCTION_CASES + [case[0] for case in SEGMENTATION_CASES]:
            with self.subTest(text=text):
                result = self.segmenter.segment(text)
                reconstructed = "".join(seg.text for seg in result.segments)
                self.assertEqual(reconstructed, text)
                self.assertEqual(result.dropped, [])

    def test_segment_positions_match_text(self):
        """Segment offsets are contiguous and index the input."""
        for text in RECONSTRUCTION_CASES:
            with self.subTest(text=text):
                result = self.segmenter.segment(text)
                position = 0
                for seg in result.segments:
                    self.assertEqual(seg.start, position)
                    self.assertEqual(text[seg.start:seg.end], seg.text)
                    position = seg.end
                self.assertEqual(position, len(text))

    def test_languages_follow_scripts(self):
        result = self.segmenter.segment("Hello 안녕 日本 ですね")
        self.assertEqual([seg.lang for seg in result.segments], ["en", "ko", "zh", "ja"])

    def test_single_script_is_one_segment(self):
        """Segmenting single-script text twice yields one identical segment."""
        for text in ["안녕하세요", "Hello, world!", "Привет мир"]:
            with self.subTest(text=text):
                first = self.segmenter.segment(text)
                second = self.segmenter.segment(text)
                self.assertEqual(len(first.segments), 1)
                self.assertEqual(first.segments, second.segments)

    def test_result_structure(self):
        result = self.segmenter.segment("Hello 世界")
        self.assertIsInstance(result, SegmentResult)
        self.assertEqual(result.original_text, "Hello 世界")
        for seg in result.segments:
            self.assertIsInstance(seg, Segment)


class TestEdgeCases(unittest.TestCase):
    """Test boundary inputs and the emission filter."""

    def test_empty_string(self):
        result = segment_text("")
        self.assertEqual(result.segments, [])
        self.assertEqual(result.dropped, [])

    def test_whitespace_only(self):
        """Blank input emits nothing; the text is reported as dropped."""
        result = segment_text("   ")
        self.assertEqual(result.segments, [])
        self.assertEqual("".join(seg.text for seg in result.dropped), "   ")

    def test_shorter_than_minimum(self):
        config = WrapperConfig(min_segment_length=3)
        result = segment_text("  ab ", config)
        self.assertEqual(result.segments, [])

    def test_filtered_runs_merge_into_neighbours(self):
        """Short runs are merged rather than lost."""
        config = WrapperConfig(min_segment_length=2)
        result = segment_text("a 한글 b", config)
        self.assertEqual([(seg.text, seg.script) for seg in result.segments], [("a 한글 b", "korean")])
        self.assertEqual(result.segments[0].start, 0)
        self.assertEqual(result.segments[0].end, 6)

    def test_filtered_runs_dropped_without_merge(self):
        """Without merging, filtered runs are reported in dropped."""
        config = WrapperConfig(min_segment_length=2, merge_filtered_segments=False)
        text = "a 한글 b"
        result = segment_text(text, config)
        self.assertEqual([seg.text for seg in result.segments], ["한글 "])
        self.assertEqual([seg.text for seg in result.dropped], ["a ", "b"])

        runs = sorted(result.segments + result.dropped, key=lambda seg: seg.start)
        self.assertEqual("".join(seg.text for seg in runs), text)

    def test_long_unbalanced_punctuation(self):
        """Long runs of unmatched brackets and quotes segment in one pass."""
        text = "(" * 20000 + "한글" + '"' * 20001 + ")" * 20000
        result = segment_text(text)
        self.assertEqual("".join(seg.text for seg in result.segments), text)
        self.assertIn("korean", [seg.script for seg in result.segments])

    def test_whitespace_after_closer_dropped_without_merge(self):
        config = WrapperConfig(merge_filtered_segments=False)
        result = segment_text("(한글) world", config)
        self.assertEqual([seg.text for seg in result.segments], ["(한글)", "world"])
        self.assertEqual([seg.text for seg in result.dropped], [" "])


class TestConfiguredSegmentation(unittest.TestCase):
    """Test configuration options that change segmentation."""

    def test_glyph_override_bypasses_pairing(self):
        config = WrapperConfig(glyph_overrides={"()": "latin"})
        result = segment_text("(한글)", config)
        self.assertEqual(
            [(seg.text, seg.script) for seg in result.segments],
            [("(", "latin"), ("한글", "korean"), (")", "latin")],
        )

    def test_glyph_override_on_punctuation_run(self):
        config = WrapperConfig(glyph_overrides={"。、": "japanese"})
        result = segment_text("日本語。", config)
        self.assertEqual(
            [(seg.text, seg.script) for seg in result.segments],
            [("日本語", "chinese"), ("。", "japanese")],
        )

    def test_without_whitespace_preservation(self):
        """Whitespace is classified (latin) instead of folded."""
        config = WrapperConfig(preserve_whitespace=False)
        result = segment_text("안녕 하세요", config)
        self.assertEqual(
            [(seg.text, seg.script) for seg in result.segments],
            [("안녕", "korean"), (" 하세요", "korean")],
        )

    def test_language_override(self):
        config = WrapperConfig(language_overrides={"chinese": "zh-TW"})
        result = segment_text("中文", config)
        self.assertEqual(result.segments[0].lang, "zh-TW")

    def test_extended_script(self):
        ranges = {**DEFAULT_SCRIPT_RANGES, "armenian": ((0x0531, 0x058F),)}
        config = WrapperConfig(script_ranges=ranges, language_overrides={"armenian": "hy"})
        result = segment_text("Բարեւ Hello", config)
        self.assertEqual(
            [(seg.text, seg.script, seg.lang) for seg in result.segments],
            [("Բարեւ ", "armenian", "hy"), ("Hello", "latin", "en")],
        )

    def test_extended_script_without_language(self):
        ranges = {**DEFAULT_SCRIPT_RANGES, "armenian": ((0x0531, 0x058F),)}
        result = segment_text("Բարեւ", WrapperConfig(script_ranges=ranges))
        self.assertEqual(result.segments[0].lang, "und")

    def test_debug_logging(self):
        segmenter = ScriptSegmenter(WrapperConfig(debug=True))
        with self.assertLogs("mlwrap.script_segmenter.script_segmenter", level="DEBUG") as logs:
            segmenter.segment("(한글")
        self.assertTrue(any("Opener" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main(verbosity=2)
