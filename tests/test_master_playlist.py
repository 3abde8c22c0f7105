import pytest

from ffhls.manifest.master_playlist import render_master_manifest, write_master_manifest
from ffhls.quality.catalog import DEFAULT_CATALOG
from ffhls.quality.resolver import resolve_qualities
from ffhls.utils.exceptions import FileSystemError


def test_bandwidth_is_bits_per_second():
    qualities = resolve_qualities(DEFAULT_CATALOG, ["360"])
    assert "BANDWIDTH=800000," in render_master_manifest(qualities)


def test_writes_exact_master_playlist(tmp_path):
    qualities = resolve_qualities(DEFAULT_CATALOG, ["360", "720"])
    path = write_master_manifest(tmp_path, qualities)

    assert path == tmp_path / "master.m3u8"
    assert path.read_text() == (
        "#EXTM3U\n"
        "#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360\n"
        "360p.m3u8\n"
        "#EXT-X-STREAM-INF:BANDWIDTH=2800000,RESOLUTION=1280x720\n"
        "720p.m3u8"
    )


def test_overwrites_previous_playlist(tmp_path):
    (tmp_path / "master.m3u8").write_text("stale content that is much longer than needed")
    write_master_manifest(tmp_path, resolve_qualities(DEFAULT_CATALOG, ["120"]))

    assert (tmp_path / "master.m3u8").read_text() == (
        "#EXTM3U\n"
        "#EXT-X-STREAM-INF:BANDWIDTH=100000,RESOLUTION=120x68\n"
        "120p.m3u8"
    )


def test_write_failure_raises_file_system_error(tmp_path):
    with pytest.raises(FileSystemError):
        write_master_manifest(tmp_path / "missing", resolve_qualities(DEFAULT_CATALOG))
