"""Configuration for the script segmenter and wrapper.

A single immutable value built once and handed to every engine instance.
Option names follow Python conventions, but the camelCase names used by
existing page configs (``autoWrap``, ``cssClasses.useShortNames``, ...)
are accepted as aliases.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Script name -> inclusive code-point intervals. Iteration order is the
# lookup order of the classifier.
DEFAULT_SCRIPT_RANGES: dict[str, tuple[tuple[int, int], ...]] = {
    "latin": (
        (0x0041, 0x005A),  # A-Z
        (0x0061, 0x007A),  # a-z
        (0x00C0, 0x00FF),  # Latin-1 Supplement
        (0x0100, 0x017F),  # Latin Extended-A
        (0x0180, 0x024F),  # Latin Extended-B
        (0x1E00, 0x1EFF),  # Latin Extended Additional
    ),
    "korean": (
        (0xAC00, 0xD7AF),  # Hangul Syllables
        (0x1100, 0x11FF),  # Hangul Jamo
        (0x3130, 0x318F),  # Hangul Compatibility Jamo
        (0xA960, 0xA97F),  # Hangul Jamo Extended-A
        (0xD7B0, 0xD7FF),  # Hangul Jamo Extended-B
    ),
    "japanese": (
        (0x3040, 0x309F),  # Hiragana
        (0x30A0, 0x30FF),  # Katakana
        (0x31F0, 0x31FF),  # Katakana Phonetic Extensions
    ),
    "chinese": (
        (0x4E00, 0x9FFF),  # CJK Unified Ideographs
        (0x3400, 0x4DBF),  # CJK Extension A
        (0x20000, 0x2A6DF),  # CJK Extension B
        (0x2A700, 0x2B73F),  # CJK Extension C
        (0x2B740, 0x2B81F),  # CJK Extension D
        (0x2B820, 0x2CEAF),  # CJK Extension E
        (0x2CEB0, 0x2EBEF),  # CJK Extension F
        (0xF900, 0xFAFF),  # CJK Compatibility Ideographs
    ),
    "arabic": (
        (0x0600, 0x06FF),  # Arabic
        (0x0750, 0x077F),  # Arabic Supplement
        (0x08A0, 0x08FF),  # Arabic Extended-A
        (0xFB50, 0xFDFF),  # Arabic Presentation Forms-A
        (0xFE70, 0xFEFF),  # Arabic Presentation Forms-B
    ),
    "cyrillic": (
        (0x0400, 0x04FF),  # Cyrillic
        (0x0500, 0x052F),  # Cyrillic Supplement
        (0x2DE0, 0x2DFF),  # Cyrillic Extended-A
        (0xA640, 0xA69F),  # Cyrillic Extended-B
    ),
    "greek": (
        (0x0370, 0x03FF),  # Greek and Coptic
        (0x1F00, 0x1FFF),  # Greek Extended
    ),
    "hebrew": (
        (0x0590, 0x05FF),  # Hebrew
        (0xFB1D, 0xFB4F),  # Hebrew Presentation Forms
    ),
    "thai": (
        (0x0E00, 0x0E7F),  # Thai
    ),
    "devanagari": (
        (0x0900, 0x097F),  # Devanagari
    ),
}

# Default language tag per script
DEFAULT_LANGUAGES: dict[str, str] = {
    "latin": "en",
    "korean": "ko",
    "japanese": "ja",
    "chinese": "zh",
    "arabic": "ar",
    "cyrillic": "ru",
    "greek": "el",
    "hebrew": "he",
    "thai": "th",
    "devanagari": "hi",
}

DEFAULT_SCRIPT = "latin"
UNDETERMINED_LANGUAGE = "und"

DEFAULT_SKIP_ELEMENTS = ("script", "style", "noscript", "template")


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class CssClasses(_ConfigModel):
    """Class naming scheme for wrapped spans."""

    wrapper: str = Field("", description="Extra class added to every span")
    use_short_names: bool = Field(True, description="ml-ko style names instead of korean-script")
    script_specific: dict[str, str] = Field(default_factory=dict)


class WrapperConfig(_ConfigModel):
    """Segmenter and wrapper configuration."""

    script_ranges: dict[str, tuple[tuple[int, int], ...]] = Field(
        default_factory=lambda: dict(DEFAULT_SCRIPT_RANGES)
    )
    glyph_overrides: dict[str, str] = Field(default_factory=dict)
    language_overrides: dict[str, str] = Field(default_factory=dict)
    css_classes: CssClasses = Field(default_factory=CssClasses)
    skip_elements: tuple[str, ...] = DEFAULT_SKIP_ELEMENTS

    preserve_whitespace: bool = True
    min_segment_length: int = Field(1, ge=0)
    merge_filtered_segments: bool = True

    auto_wrap: bool = False
    auto_wrap_selector: str = "body"
    auto_wrap_delay: int = Field(100, ge=0, description="Milliseconds before auto-wrapping")

    debug: bool = False

    @field_validator("script_ranges")
    @classmethod
    def _check_ranges(cls, ranges: dict[str, tuple[tuple[int, int], ...]]):
        for script, intervals in ranges.items():
            for start, end in intervals:
                if start < 0 or start > end:
                    raise ValueError(f"Invalid range for {script}: {start:#x}-{end:#x}")
        return ranges

    @field_validator("skip_elements")
    @classmethod
    def _lower_skip_elements(cls, names: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(name.lower() for name in names)

    @model_validator(mode="after")
    def _check_override_scripts(self) -> "WrapperConfig":
        for glyphs, script in self.glyph_overrides.items():
            if script not in self.script_ranges:
                raise ValueError(f"Glyph override {glyphs!r} names unknown script: {script}")
        return self

    @property
    def languages(self) -> dict[str, str]:
        """Script -> language tag, defaults merged with overrides."""
        return {**DEFAULT_LANGUAGES, **self.language_overrides}

    def with_options(self, **options) -> "WrapperConfig":
        """Return a copy with the given options merged in.

        Options use field names or camelCase aliases. Nested settings
        (``css_classes``) are merged key by key; every other option
        replaces the current value. The result is validated as a whole.
        """
        return WrapperConfig(**_merge_options(WrapperConfig, self.model_dump(), options))


def _field_names(model: type[BaseModel]) -> dict[str, str]:
    """Field name or alias -> field name."""
    names = {}
    for name, info in model.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


def _merge_options(model: type[BaseModel], data: dict[str, Any], options: Mapping[str, Any]) -> dict[str, Any]:
    names = _field_names(model)
    merged = dict(data)
    for key, value in options.items():
        name = names.get(key, key)
        info = model.model_fields.get(name)
        nested = info.annotation if info is not None else None
        if isinstance(nested, type) and issubclass(nested, BaseModel) and isinstance(merged.get(name), dict):
            if isinstance(value, BaseModel):
                value = value.model_dump(exclude_unset=True)
            if isinstance(value, Mapping):
                value = _merge_options(nested, merged[name], value)
        merged[name] = value
    return merged


def load_config(path: Path) -> WrapperConfig:
    """Load a configuration file, falling back to defaults if it is missing."""
    if not path.exists():
        return WrapperConfig()
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid config file {path}: {e}") from e
    return WrapperConfig(**data)
