"""
Script segmentation for multilingual text.

Splits text into runs by writing system. Every character is classified by
code-point range, whitespace and punctuation are folded into the
surrounding run, and paired punctuation (brackets, quotes) follows the
script of the text it encloses.
"""

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

import regex
import unicodedataplus as udp

from ..config import DEFAULT_SCRIPT, UNDETERMINED_LANGUAGE, WrapperConfig

_LOGGER = logging.getLogger(__name__)


@dataclass
class Segment:
    """A run of text in a single script."""

    text: str
    start: int
    end: int
    script: str
    lang: str


@dataclass
class SegmentResult:
    """Result of segmenting text by script."""

    original_text: str
    segments: list[Segment]
    dropped: list[Segment] = field(default_factory=list)


# =============================================================================
# PAIRED PUNCTUATION
# =============================================================================

# Opening glyph -> closing glyph. Straight quotes open and close with the
# same glyph.
PAIRED_PUNCTUATION: dict[str, str] = {
    "(": ")",
    "[": "]",
    "{": "}",
    '"': '"',
    "'": "'",
    "“": "”",
    "‘": "’",
    "«": "»",
    "‹": "›",
    "「": "」",
    "『": "』",
    "〈": "〉",
    "《": "》",
    "（": "）",
    "【": "】",
    "〔": "〕",
}

# Between two letters these are apostrophes (It's, l'eau), not quotes.
APOSTROPHES = frozenset("'’")

_WHITESPACE_OR_PUNCTUATION = regex.compile(r"[\s\p{P}]")


def is_whitespace_or_punctuation(char: str) -> bool:
    """Check if a character is whitespace or Unicode punctuation (\\p{P})."""
    return bool(_WHITESPACE_OR_PUNCTUATION.fullmatch(char))


# =============================================================================
# CLASSIFIER
# =============================================================================


class ScriptClassifier:
    """
    Maps characters to script names.

    Lookup order: glyph override, then the range tables in their
    configured order (first match wins), then ``latin``.
    """

    def __init__(
        self,
        script_ranges: Mapping[str, tuple[tuple[int, int], ...]],
        glyph_overrides: Optional[Mapping[str, str]] = None,
        debug: bool = False,
    ):
        """
        Args:
            script_ranges: Script name -> inclusive code-point intervals.
            glyph_overrides: Keys of one or more characters -> forced script.
                             Every character in a key gets the script.
            debug: Log characters that fall back to the default script.
        """
        self.script_ranges = {script: tuple(ranges) for script, ranges in script_ranges.items()}
        self.overrides: dict[str, str] = {}
        for glyphs, script in (glyph_overrides or {}).items():
            for glyph in glyphs:
                self.overrides[glyph] = script
        self.debug = debug

    def is_overridden(self, char: str) -> bool:
        return char in self.overrides

    def detect_script(self, char: str) -> str:
        """Detect the script of a single character."""
        if not char:
            return DEFAULT_SCRIPT

        override = self.overrides.get(char)
        if override is not None:
            return override

        code = ord(char[0])
        for script, ranges in self.script_ranges.items():
            for start, end in ranges:
                if start <= code <= end:
                    return script

        if self.debug:
            _LOGGER.debug(
                "No range covers %r (U+%04X, Unicode script %s), using %s",
                char, code, udp.script(char[0]), DEFAULT_SCRIPT,
            )
        return DEFAULT_SCRIPT


# =============================================================================
# PAIRING TRACKER
# =============================================================================


@dataclass
class OpenPair:
    """An opening glyph waiting for its closer."""

    char: str
    script: str
    position: int


class PairTracker:
    """
    Matches closing punctuation to the opener it belongs to.

    A closer removes the nearest unmatched opener of its own type, even
    when openers of other types were opened after it.
    """

    def __init__(self, pairs: Optional[Mapping[str, str]] = None):
        self.pairs = dict(pairs if pairs is not None else PAIRED_PUNCTUATION)
        self.closing_to_opening = {closing: opening for opening, closing in self.pairs.items()}
        self._open: dict[str, list[OpenPair]] = {}

    @property
    def stack(self) -> list[OpenPair]:
        """Unmatched openers of every type, in text order."""
        entries = [entry for waiting in self._open.values() for entry in waiting]
        return sorted(entries, key=lambda entry: entry.position)

    def _has_open(self, opening: str) -> bool:
        return bool(self._open.get(opening))

    @staticmethod
    def is_apostrophe(text: str, position: int) -> bool:
        """Whether the glyph at ``position`` is an apostrophe inside a word."""
        return (
            text[position] in APOSTROPHES
            and 0 < position < len(text) - 1
            and text[position - 1].isalpha()
            and text[position + 1].isalpha()
        )

    def is_closing(self, char: str) -> bool:
        """Whether ``char`` closes a pair at this point of the text.

        A symmetric glyph (straight quote) closes when an identical glyph
        is already open, and opens otherwise.
        """
        opening = self.closing_to_opening.get(char)
        if opening is None:
            return False
        if opening == char:
            return self._has_open(char)
        return True

    def push(self, char: str, script: str, position: int) -> None:
        self._open.setdefault(char, []).append(OpenPair(char=char, script=script, position=position))

    def pop_match(self, char: str) -> Optional[str]:
        """Remove the nearest opener matching closer ``char`` and return its script."""
        entries = self._open.get(self.closing_to_opening[char])
        if not entries:
            return None
        return entries.pop().script

    def match_closers(self, text: str) -> dict[int, int]:
        """Map each balanced opener position to the position of its closer.

        Pairs of one type nest; other types are ignored. A straight quote
        closes the nearest open quote of the same glyph. Apostrophes
        inside words never pair.
        """
        closers: dict[int, int] = {}
        waiting: dict[str, list[int]] = {}
        for i, char in enumerate(text):
            if self.is_apostrophe(text, i):
                continue
            opening = self.closing_to_opening.get(char)
            if opening is not None and waiting.get(opening):
                closers[waiting[opening].pop()] = i
                continue
            if char in self.pairs:
                waiting.setdefault(char, []).append(i)
        return closers


# =============================================================================
# SEGMENT ACCUMULATOR
# =============================================================================


class _SegmentBuilder:
    """Collects spans of the source text into segments and applies the emission filter."""

    def __init__(self, source: str, languages: Mapping[str, str], min_length: int, merge_filtered: bool):
        self.source = source
        self.languages = languages
        self.min_length = min_length
        self.merge_filtered = merge_filtered

        self.segments: list[Segment] = []
        self.dropped: list[Segment] = []

        # Current run is source[start:end]
        self.start = 0
        self.end = 0
        self.script: Optional[str] = None

        # Filtered runs waiting to merge: source[carry_start:start]
        self._carry_start: Optional[int] = None

    def _make(self, start: int, end: int, script: Optional[str]) -> Segment:
        script = script or DEFAULT_SCRIPT
        return Segment(
            text=self.source[start:end],
            start=start,
            end=end,
            script=script,
            lang=self.languages.get(script, UNDETERMINED_LANGUAGE),
        )

    def append(self, position: int) -> None:
        if self.start == self.end:
            self.start = position
        self.end = position + 1

    def close(self) -> None:
        """End the current segment, emitting it if it passes the filter."""
        start, end = self.start, self.end
        self.start = self.end
        if start == end:
            return

        stripped = self.source[start:end].strip()
        if stripped and len(stripped) >= self.min_length:
            if self._carry_start is not None:
                start = self._carry_start
                self._carry_start = None
            self.segments.append(self._make(start, end, self.script))
        elif self.merge_filtered:
            if self._carry_start is None:
                self._carry_start = start
        else:
            self.dropped.append(self._make(start, end, self.script))

    def finish(self) -> None:
        self.close()
        if self._carry_start is None:
            return
        if self.segments:
            last = self.segments[-1]
            last.end = self.end
            last.text = self.source[last.start:last.end]
        else:
            self.dropped.append(self._make(self._carry_start, self.end, self.script))
        self._carry_start = None


# =============================================================================
# MAIN SEGMENTER CLASS
# =============================================================================


class ScriptSegmenter:
    """
    Splits text into script-tagged segments.

    The configuration is read once at construction; a segmenter keeps no
    state between calls to :meth:`segment`.
    """

    def __init__(self, config: Optional[WrapperConfig] = None):
        self.config = config or WrapperConfig()
        self.classifier = ScriptClassifier(
            self.config.script_ranges,
            self.config.glyph_overrides,
            debug=self.config.debug,
        )
        self.languages = self.config.languages

        if self.config.debug:
            _LOGGER.debug("ScriptSegmenter initialized with config: %s", self.config)

    def detect_script(self, char: str) -> str:
        return self.classifier.detect_script(char)

    def language_for(self, script: str) -> str:
        return self.languages.get(script, UNDETERMINED_LANGUAGE)

    def _is_folded(self, char: str) -> bool:
        """Whether a character inherits its script from context."""
        return (
            self.config.preserve_whitespace
            and not self.classifier.is_overridden(char)
            and is_whitespace_or_punctuation(char)
        )

    def _classify(self, text: str) -> tuple[list[Optional[str]], list[Optional[int]]]:
        """Classify every character in one backward pass.

        Returns:
            Tuple of (script of each character, None where folded; index
            of the next character that is not folded, None at the end).
        """
        scripts: list[Optional[str]] = [None] * len(text)
        following: list[Optional[int]] = [None] * len(text)
        upcoming: Optional[int] = None
        for i in range(len(text) - 1, -1, -1):
            following[i] = upcoming
            if not self._is_folded(text[i]):
                scripts[i] = self.detect_script(text[i])
                upcoming = i
        return scripts, following

    def segment(self, text: str) -> SegmentResult:
        """
        Segment text by script.

        Args:
            text: Input text.

        Returns:
            SegmentResult with the emitted segments and any runs removed
            by the minimum-length filter.
        """
        if not text:
            return SegmentResult(original_text=text, segments=[])

        debug = self.config.debug
        builder = _SegmentBuilder(
            text,
            self.languages,
            min_length=self.config.min_segment_length,
            merge_filtered=self.config.merge_filtered_segments,
        )
        tracker = PairTracker()
        scripts, following = self._classify(text)
        closers = tracker.match_closers(text)
        last_script: Optional[str] = None

        for i, char in enumerate(text):
            char_script = scripts[i]
            if char_script is None:
                context = builder.script or last_script or DEFAULT_SCRIPT
                paired = not tracker.is_apostrophe(text, i)

                if paired and tracker.is_closing(char):
                    char_script = tracker.pop_match(char)
                    if char_script is None:
                        char_script = context
                        if debug:
                            _LOGGER.debug("Unmatched closer %r at %d, using context %s", char, i, context)
                    elif debug:
                        _LOGGER.debug("Closer %r at %d matched, script %s", char, i, char_script)

                    if builder.script is not None and builder.script != char_script:
                        builder.close()
                    builder.script = char_script
                    builder.append(i)

                    # Keep the closer with the text it closes
                    upcoming = following[i]
                    if upcoming is not None and scripts[upcoming] != char_script:
                        builder.close()
                        builder.script = None
                    continue

                if paired and char in tracker.pairs:
                    closer = closers.get(i)
                    inner = following[i]
                    if closer is not None and inner is not None and inner < closer:
                        char_script = scripts[inner]
                    else:
                        char_script = context
                    tracker.push(char, char_script, i)
                    if debug:
                        _LOGGER.debug("Opener %r at %d, script %s", char, i, char_script)

                    if builder.script is not None and builder.script != char_script:
                        builder.close()
                    builder.script = char_script
                    builder.append(i)
                    continue

                # Plain whitespace or punctuation
                if builder.script is None:
                    builder.script = last_script
                builder.append(i)
                continue

            last_script = char_script

            if builder.script is not None and builder.script != char_script:
                builder.close()
            builder.script = char_script
            builder.append(i)

        builder.finish()

        if debug:
            _LOGGER.debug(
                "Segmented %d chars into %d segments (%d dropped)",
                len(text), len(builder.segments), len(builder.dropped),
            )

        return SegmentResult(original_text=text, segments=builder.segments, dropped=builder.dropped)


def segment_text(text: str, config: Optional[WrapperConfig] = None) -> SegmentResult:
    """
    Convenience function to segment text by script.

    Args:
        text: Input text to segment.
        config: Optional configuration; defaults are used if omitted.

    Returns:
        SegmentResult with the emitted segments.
    """
    segmenter = ScriptSegmenter(config)
    return segmenter.segment(text)
