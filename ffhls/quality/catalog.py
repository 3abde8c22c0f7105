# ffhls/quality/catalog.py
"""
Quality catalog - named HLS rendition profiles

The catalog is a lookup table, not a ranked ladder: order defines output
order, and bitrates are not required to grow with the name.
"""

import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Iterable, List, Sequence, Tuple

import yaml

from ffhls.monitoring.logger import get_logger
from ffhls.utils.exceptions import ConfigurationError, InvalidProfileError

logger = get_logger('catalog')

_RESOLUTION_RE = re.compile(r'^(\d+)x(\d+)$')
_RATE_RE = re.compile(r'^(\d+(?:\.\d+)?)([kKM]?)$')
_PLACEHOLDER_RE = re.compile(r'%0?\d*d')

REQUIRED_FIELDS = (
    'resolution', 'bitrate', 'maxrate', 'bufsize', 'file', 'name', 'segments'
)


def parse_rate(value: str) -> int:
    """
    Convert an ffmpeg rate string to bits per second

    "800k" -> 800000, "1.5M" -> 1500000. A bare number is read as kilobits,
    matching how the rates are written in the catalog.

    Raises:
        ValueError: If the value is not a rate
    """
    match = _RATE_RE.match(str(value).strip())
    if not match:
        raise ValueError(f"Invalid rate: {value!r}")

    amount, unit = match.groups()
    scale = 1_000_000 if unit == 'M' else 1000
    return round(float(amount) * scale)


@dataclass(frozen=True)
class QualityProfile:
    """One HLS rendition"""
    name: str
    resolution: str
    bitrate: str
    maxrate: str
    bufsize: str
    file: str
    segments: str

    @property
    def bandwidth(self) -> int:
        """Target bitrate in bits per second"""
        return parse_rate(self.bitrate)

    @property
    def width(self) -> int:
        return int(self.resolution.split('x')[0])

    @property
    def height(self) -> int:
        return int(self.resolution.split('x')[1])

    @classmethod
    def from_dict(cls, data: dict) -> "QualityProfile":
        """Build a profile from a mapping, stringifying scalar values"""
        if not isinstance(data, dict):
            raise InvalidProfileError(
                f"Quality entry must be a mapping, got {type(data).__name__}"
            )

        extra = set(data) - set(REQUIRED_FIELDS)
        if extra:
            logger.debug(
                f"Ignoring extra properties on quality {data.get('name')}: "
                f"{', '.join(sorted(map(str, extra)))}"
            )

        values = {
            key: '' if data.get(key) is None else str(data[key])
            for key in REQUIRED_FIELDS
        }
        return cls(**values)


QualityCatalog = Tuple[QualityProfile, ...]


DEFAULT_CATALOG: QualityCatalog = (
    QualityProfile("120", "120x68", "100k", "107k", "150k", "120p.m3u8", "120p_%03d.ts"),
    QualityProfile("160", "160x90", "150k", "160k", "200k", "160p.m3u8", "160p_%03d.ts"),
    QualityProfile("240", "240x135", "200k", "214k", "300k", "240p.m3u8", "240p_%03d.ts"),
    QualityProfile("180", "320x180", "350k", "375k", "500k", "180p.m3u8", "180p_%03d.ts"),
    QualityProfile("240w", "426x240", "400k", "428k", "600k", "240p_wide.m3u8", "240pw_%03d.ts"),
    QualityProfile("270", "480x270", "500k", "535k", "750k", "270p.m3u8", "270p_%03d.ts"),
    QualityProfile("360", "640x360", "800k", "856k", "1200k", "360p.m3u8", "360p_%03d.ts"),
    QualityProfile("480", "854x480", "1400k", "1498k", "2100k", "480p.m3u8", "480p_%03d.ts"),
    QualityProfile("540", "960x540", "2000k", "2140k", "3000k", "540p.m3u8", "540p_%03d.ts"),
    QualityProfile("720", "1280x720", "2800k", "2996k", "4200k", "720p.m3u8", "720p_%03d.ts"),
    QualityProfile("1080", "1920x1080", "5000k", "5350k", "7500k", "1080p.m3u8", "1080p_%03d.ts"),
    QualityProfile("1440", "2560x1440", "8000k", "8560k", "12000k", "1440p.m3u8", "1440p_%03d.ts"),
    QualityProfile("2160", "3840x2160", "14000k", "14980k", "21000k", "2160p.m3u8", "2160p_%03d.ts"),
)


def validate_profile(profile: QualityProfile):
    """
    Validate a single profile

    Raises:
        InvalidProfileError: On the first invalid field
    """
    if not isinstance(profile, QualityProfile):
        raise InvalidProfileError(
            f"Catalog entries must be QualityProfile, got {type(profile).__name__}"
        )

    missing = [
        f.name for f in fields(profile)
        if not isinstance(getattr(profile, f.name), str)
        or not getattr(profile, f.name).strip()
    ]
    if missing:
        raise InvalidProfileError(
            f"Quality {profile.name or '<unnamed>'} is missing required "
            f"properties: {', '.join(missing)}. Each quality must have "
            f"{', '.join(REQUIRED_FIELDS)}."
        )

    if not _RESOLUTION_RE.match(profile.resolution):
        raise InvalidProfileError(
            f"Quality {profile.name}: resolution must be WIDTHxHEIGHT, "
            f"got {profile.resolution!r}"
        )

    for attr in ('bitrate', 'maxrate', 'bufsize'):
        value = getattr(profile, attr)
        try:
            rate = parse_rate(value)
        except ValueError:
            rate = 0
        if rate <= 0:
            raise InvalidProfileError(
                f"Quality {profile.name}: {attr} must be a positive rate "
                f"like '800k', got {value!r}"
            )

    placeholders = _PLACEHOLDER_RE.findall(profile.segments)
    if len(placeholders) != 1:
        raise InvalidProfileError(
            f"Quality {profile.name}: segment pattern must contain exactly one "
            f"sequence placeholder such as %03d, got {profile.segments!r}"
        )


def validate_catalog(catalog: Sequence[QualityProfile]):
    """
    Validate a whole catalog before anything is encoded

    Raises:
        InvalidProfileError: If any profile is malformed or names repeat
    """
    if isinstance(catalog, (str, bytes)) or not isinstance(catalog, (list, tuple)):
        raise InvalidProfileError(
            f"Catalog must be a sequence of qualities, got {type(catalog).__name__}"
        )

    seen = set()
    for profile in catalog:
        validate_profile(profile)
        if profile.name in seen:
            raise InvalidProfileError(f"Duplicate quality name: {profile.name}")
        seen.add(profile.name)


def build_catalog(entries: Iterable[Any]) -> QualityCatalog:
    """Convert mappings (or profiles) into a validated catalog"""
    catalog = tuple(
        entry if isinstance(entry, QualityProfile) else QualityProfile.from_dict(entry)
        for entry in entries
    )
    validate_catalog(catalog)
    return catalog


def load_catalog(path: Path) -> QualityCatalog:
    """
    Load a replacement catalog from YAML

    Accepts either a top-level list of quality mappings or a mapping with
    a ``qualities`` list.

    Raises:
        ConfigurationError: If the file cannot be read or parsed
        InvalidProfileError: If the entries are invalid
    """
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read catalog file {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in catalog file {path}: {e}")

    if isinstance(data, dict):
        data = data.get('qualities')

    if not isinstance(data, list):
        raise ConfigurationError(
            f"Catalog file {path} must contain a list of qualities"
        )

    catalog = build_catalog(data)
    logger.debug(f"Loaded {len(catalog)} qualities from {path}")
    return catalog


def catalog_names(catalog: Sequence[QualityProfile]) -> List[str]:
    return [q.name for q in catalog]
