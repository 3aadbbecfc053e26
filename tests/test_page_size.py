import pytest

from src.packages.page_size import (
    PlatformDescriptor,
    describe_host,
    detect_page_size,
    page_size_for,
    supports_16kb,
)


def test_legacy_api_levels_use_4kb():
    for level in range(1, 35):
        assert page_size_for(PlatformDescriptor(api_level=level)) == 4096


def test_modern_api_levels_use_16kb():
    for level in range(35, 60):
        assert page_size_for(PlatformDescriptor(api_level=level)) == 16384


def test_api_level_wins_over_native_probe():
    desc = PlatformDescriptor(api_level=36, native_page_size=4096)
    assert page_size_for(desc) == 16384
    desc = PlatformDescriptor(api_level=30, native_page_size=16384)
    assert page_size_for(desc) == 4096


@pytest.mark.parametrize(
    "native, expected",
    [(4096, 4096), (16384, 16384), (65536, 4096), (8192, 4096), (None, 4096)],
)
def test_native_probe_used_without_api_level(native, expected):
    assert page_size_for(PlatformDescriptor(native_page_size=native)) == expected


def test_custom_threshold():
    assert page_size_for(PlatformDescriptor(api_level=34), threshold=34) == 16384
    assert page_size_for(PlatformDescriptor(api_level=35), threshold=36) == 4096


def test_detect_falls_back_when_descriptor_fails():
    def broken():
        raise RuntimeError("cannot read platform version")

    assert detect_page_size(broken) == 4096


def test_detect_falls_back_when_descriptor_is_garbage():
    # api_level ที่ไม่ใช่ตัวเลขต้องไม่หลุด error ออกไป
    assert detect_page_size(lambda: PlatformDescriptor(api_level="x")) == 4096


def test_supports_16kb_matches_page_size():
    assert supports_16kb(16384)
    assert not supports_16kb(4096)


def test_describe_host_reads_environment(monkeypatch):
    monkeypatch.setenv("PLATFORM_API_LEVEL", "35")
    assert describe_host().api_level == 35
    assert describe_host(30).api_level == 30


def test_describe_host_without_api_level(monkeypatch):
    monkeypatch.delenv("PLATFORM_API_LEVEL", raising=False)
    desc = describe_host()
    assert desc.api_level is None


def test_describe_host_rejects_bad_api_level(monkeypatch):
    monkeypatch.delenv("PLATFORM_API_LEVEL", raising=False)
    with pytest.raises(ValueError):
        describe_host("fifteen")
    assert detect_page_size(lambda: describe_host("fifteen")) == 4096


@pytest.mark.parametrize("native", [16384.0, 4096.0, True])
def test_non_integer_native_page_size_ignored(native):
    result = page_size_for(PlatformDescriptor(native_page_size=native))
    assert result == 4096
    assert type(result) is int


@pytest.mark.parametrize("level", [35.0, 30.5, True])
def test_non_integer_api_level_rejected(level):
    with pytest.raises(TypeError):
        page_size_for(PlatformDescriptor(api_level=level))
    assert detect_page_size(lambda: PlatformDescriptor(api_level=level)) == 4096


def test_describe_host_accepts_float_from_toml(monkeypatch):
    monkeypatch.delenv("PLATFORM_API_LEVEL", raising=False)
    desc = describe_host(35.0)
    assert desc.api_level == 35
    assert page_size_for(desc) == 16384
