from dataclasses import replace

import pytest

from ffhls.quality.catalog import (
    DEFAULT_CATALOG,
    QualityProfile,
    build_catalog,
    load_catalog,
    parse_rate,
    validate_catalog,
)
from ffhls.utils.exceptions import ConfigurationError, InvalidProfileError


def _profile(**overrides):
    base = QualityProfile("360", "640x360", "800k", "856k", "1200k", "360p.m3u8", "360p_%03d.ts")
    return replace(base, **overrides)


def test_default_catalog_has_thirteen_entries_in_order():
    names = [q.name for q in DEFAULT_CATALOG]
    assert names == [
        "120", "160", "240", "180", "240w", "270", "360",
        "480", "540", "720", "1080", "1440", "2160",
    ]
    validate_catalog(DEFAULT_CATALOG)


def test_default_catalog_values():
    by_name = {q.name: q for q in DEFAULT_CATALOG}
    assert by_name["720"] == QualityProfile(
        "720", "1280x720", "2800k", "2996k", "4200k", "720p.m3u8", "720p_%03d.ts"
    )
    assert by_name["240w"].file == "240p_wide.m3u8"
    assert by_name["240w"].segments == "240pw_%03d.ts"
    assert by_name["2160"].bufsize == "21000k"


def test_parse_rate():
    assert parse_rate("800k") == 800000
    assert parse_rate("14000k") == 14000000
    assert parse_rate("5M") == 5000000
    assert parse_rate("100") == 100000
    assert parse_rate("1.5M") == 1500000
    assert parse_rate("2.5k") == 2500
    with pytest.raises(ValueError):
        parse_rate("fast")


def test_profile_derived_values():
    profile = _profile()
    assert profile.bandwidth == 800000
    assert profile.width == 640
    assert profile.height == 360


@pytest.mark.parametrize("field", [
    "name", "resolution", "bitrate", "maxrate", "bufsize", "file", "segments",
])
def test_missing_field_is_rejected(field):
    with pytest.raises(InvalidProfileError, match=field):
        validate_catalog([_profile(**{field: ""})])


def test_duplicate_names_are_rejected():
    with pytest.raises(InvalidProfileError, match="Duplicate"):
        validate_catalog([_profile(), _profile(file="other.m3u8")])


@pytest.mark.parametrize("overrides", [
    {"resolution": "640-360"},
    {"bitrate": "fast"},
    {"maxrate": "0k"},
    {"segments": "360p.ts"},
    {"segments": "360p_%03d_%03d.ts"},
])
def test_malformed_values_are_rejected(overrides):
    with pytest.raises(InvalidProfileError):
        validate_catalog([_profile(**overrides)])


def test_catalog_must_be_a_sequence():
    with pytest.raises(InvalidProfileError):
        validate_catalog("360")
    with pytest.raises(InvalidProfileError):
        validate_catalog([{"name": "360"}])


def test_build_catalog_from_mappings():
    catalog = build_catalog([{
        "name": 360, "resolution": "640x360", "bitrate": "800k",
        "maxrate": "856k", "bufsize": "1200k", "file": "360p.m3u8",
        "segments": "360p_%03d.ts",
    }])
    assert catalog[0].name == "360"


def test_build_catalog_ignores_extra_keys():
    catalog = build_catalog([{
        "name": "360", "resolution": "640x360", "bitrate": "800k",
        "maxrate": "856k", "bufsize": "1200k", "file": "360p.m3u8",
        "segments": "360p_%03d.ts", "fps": 30, "label": "SD",
    }])
    assert catalog == (_profile(),)


def test_fractional_megabit_rates_are_accepted():
    catalog = build_catalog([_profile(bitrate="1.5M", maxrate="1.6M", bufsize="2.25M")])
    assert catalog[0].bandwidth == 1500000


def test_load_catalog_from_yaml(tmp_path):
    path = tmp_path / "ladder.yaml"
    path.write_text(
        "qualities:\n"
        "  - name: '480'\n"
        "    resolution: 854x480\n"
        "    bitrate: 1400k\n"
        "    maxrate: 1498k\n"
        "    bufsize: 2100k\n"
        "    file: 480p.m3u8\n"
        "    segments: 480p_%03d.ts\n"
    )
    catalog = load_catalog(path)
    assert [q.name for q in catalog] == ["480"]
    assert catalog[0].bandwidth == 1400000


def test_load_catalog_with_bad_yaml(tmp_path):
    path = tmp_path / "ladder.yaml"
    path.write_text("qualities: [\n")
    with pytest.raises(ConfigurationError):
        load_catalog(path)


def test_load_catalog_requires_list(tmp_path):
    path = tmp_path / "ladder.yaml"
    path.write_text("name: 480\n")
    with pytest.raises(ConfigurationError):
        load_catalog(path)
