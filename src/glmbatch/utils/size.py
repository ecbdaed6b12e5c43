from __future__ import annotations

import math
import re
from dataclasses import dataclass

from glmbatch.errors import ValidationError

# Recommended sizes published for glm-image, keyed by aspect ratio.
RECOMMENDED_SIZES = {
    "1:1": "1280x1280",
    "3:2": "1568x1056",
    "2:3": "1056x1568",
    "4:3": "1472x1088",
    "3:4": "1088x1472",
    "16:9": "1728x960",
    "9:16": "960x1728",
}
SIZE_PRESETS = tuple(RECOMMENDED_SIZES)
DEFAULT_PRESET = "1:1"

MIN_DIMENSION = 1024
MAX_DIMENSION = 2048
DIVISOR = 32
MAX_TOTAL_PIXELS = 2**22

_SIZE_PATTERN = re.compile(r"([0-9]+)x([0-9]+)")


@dataclass(frozen=True)
class SizeResolution:
    valid: bool
    size: str | None = None
    error: str | None = None


def parse_size(size: str) -> tuple[int, int] | None:
    match = _SIZE_PATTERN.fullmatch(size)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def nearest_multiple(value: int, divisor: int = DIVISOR) -> int:
    # Half rounds up: 2000 -> 2016, not Python's banker's rounding.
    return math.floor(value / divisor + 0.5) * divisor


def validate_custom_size(size: str) -> SizeResolution:
    """Check a WIDTHxHEIGHT string against the service's geometry limits.

    Checks run in a fixed order and the first violation is reported:
    shape, per-dimension range, divisibility by 32, then total pixel count.
    """
    parsed = parse_size(size)
    if parsed is None:
        return SizeResolution(
            valid=False,
            error=f'Invalid size format: "{size}". Use "WIDTHxHEIGHT" format (e.g., "1280x1280")',
        )
    width, height = parsed
    dimensions = (("Width", width), ("Height", height))

    for label, value in dimensions:
        if value < MIN_DIMENSION or value > MAX_DIMENSION:
            return SizeResolution(
                valid=False,
                error=f"{label} {value}px is out of range. Must be {MIN_DIMENSION}-{MAX_DIMENSION}px",
            )

    for label, value in dimensions:
        if value % DIVISOR != 0:
            return SizeResolution(
                valid=False,
                error=(
                    f"{label} {value}px must be divisible by {DIVISOR}. "
                    f"Suggested: {nearest_multiple(value)}px"
                ),
            )

    total_pixels = width * height
    if total_pixels > MAX_TOTAL_PIXELS:
        return SizeResolution(
            valid=False,
            error=f"Total pixels ({total_pixels:,}) exceeds maximum ({MAX_TOTAL_PIXELS:,})",
        )

    return SizeResolution(valid=True, size=size)


def resolve_size(size_preset: str | None = None, custom_size: str | None = None) -> SizeResolution:
    if custom_size:
        return validate_custom_size(custom_size)
    if size_preset:
        size = RECOMMENDED_SIZES.get(size_preset)
        if size is None:
            return SizeResolution(
                valid=False,
                error=f'Invalid size preset: "{size_preset}". Valid presets: {", ".join(SIZE_PRESETS)}',
            )
        return SizeResolution(valid=True, size=size)
    return SizeResolution(valid=True, size=RECOMMENDED_SIZES[DEFAULT_PRESET])


def require_size(size_preset: str | None = None, custom_size: str | None = None) -> str:
    resolution = resolve_size(size_preset, custom_size)
    if not resolution.valid or resolution.size is None:
        raise ValidationError(resolution.error or "Invalid size")
    return resolution.size
