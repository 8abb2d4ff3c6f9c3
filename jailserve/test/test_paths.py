import pytest

from jailserve.config import IndexConfig
from jailserve.index.paths import PathTranslator, clean, has_prefix, join_path, strip_prefix


@pytest.fixture
def translator():
    return PathTranslator(IndexConfig.create("/files", "/srv/ftp", "/internal", check=False))


@pytest.mark.parametrize("path, expected", [
    ("", "."),
    ("/", "/"),
    ("//", "/"),
    ("//a//b/", "/a/b"),
    ("/a/./b/../c", "/a/c"),
    ("/..", "/"),
    ("a/../..", ".."),
])
def test_clean(path, expected):
    assert clean(path) == expected


def test_join_path_skips_empty_elements():
    assert join_path("", "") == ""
    assert join_path("/srv", "", "x") == "/srv/x"
    assert join_path("/files", "/a/b") == "/files/a/b"


def test_has_prefix_is_segment_wise():
    assert has_prefix("/home/ftp", "/home/ftp")
    assert has_prefix("/home/ftp/pub", "/home/ftp")
    assert not has_prefix("/home/ftpx", "/home/ftp")
    assert has_prefix("/anything", "/")


def test_strip_prefix_noop_when_absent():
    assert strip_prefix("/other/x", "/files") == "/other/x"
    assert strip_prefix("/files/x", "/files") == "/x"


def test_to_local(translator):
    assert translator.to_local("/files") == "/srv/ftp"
    assert translator.to_local("/files/") == "/srv/ftp"
    assert translator.to_local("/files/pub//a/./b") == "/srv/ftp/pub/a/b"


def test_to_local_cannot_climb_out(translator):
    assert translator.to_local("/files/../../etc/passwd") == "/srv/ftp/etc/passwd"
    assert translator.to_local("/files/a/../../..") == "/srv/ftp"


def test_to_proxy(translator):
    assert translator.to_proxy("/srv/ftp") == "/files"
    assert translator.to_proxy("/srv/ftp/pub/a") == "/files/pub/a"


def test_to_accel(translator):
    assert translator.to_accel("/srv/ftp/pub/a.iso") == "/internal/pub/a.iso"


@pytest.mark.parametrize("proxy_path", ["/files", "/files/a", "/files/a/b c/d.txt"])
def test_proxy_round_trip(translator, proxy_path):
    assert translator.to_proxy(translator.to_local(proxy_path)) == proxy_path


@pytest.mark.parametrize("local_path", ["/srv/ftp", "/srv/ftp/x", "/srv/ftp/x/y.tar.gz"])
def test_local_round_trip(translator, local_path):
    assert translator.to_local(translator.to_proxy(local_path)) == local_path


def test_root_proxy_round_trip():
    translator = PathTranslator(IndexConfig.create("/", "/srv/ftp", check=False))
    assert translator.to_local("/") == "/srv/ftp"
    assert translator.to_proxy("/srv/ftp") == "/"
    assert translator.to_proxy(translator.to_local("/pub/x")) == "/pub/x"


def test_is_proxied(translator):
    assert translator.is_proxied("/files")
    assert translator.is_proxied("/files/x/")
    assert not translator.is_proxied("/filesystem")
    assert not translator.is_proxied("/")
