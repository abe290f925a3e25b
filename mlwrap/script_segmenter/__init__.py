"""Script segmentation for multilingual text."""

from .script_segmenter import (
    PAIRED_PUNCTUATION,
    PairTracker,
    ScriptClassifier,
    ScriptSegmenter,
    Segment,
    SegmentResult,
    segment_text,
)

__all__ = [
    "PAIRED_PUNCTUATION",
    "PairTracker",
    "ScriptClassifier",
    "ScriptSegmenter",
    "Segment",
    "SegmentResult",
    "segment_text",
]
