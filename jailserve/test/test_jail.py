import os

import pytest

from jailserve.config import IndexConfig
from jailserve.errors import JailEscapeError, SymlinkReadError
from jailserve.index.jail import JailGuard


@pytest.fixture
def guard(config):
    return JailGuard(config)


def test_contains_by_segment():
    guard = JailGuard(IndexConfig.create("/", "/home/ftp", check=False))
    assert guard.contains("/home/ftp")
    assert guard.contains("/home/ftp/pub/../a")
    assert not guard.contains("/home/ftpx")
    assert not guard.contains("/home/ftp/../ftpx")
    assert not guard.contains("/etc/passwd")


def test_resolve_relative_link(guard, jail):
    assert guard.resolve_link(str(jail / "sub" / "link")) == str(jail / "other")


def test_resolve_absolute_link_inside(guard, jail):
    os.symlink(str(jail / "a.txt"), str(jail / "abs"))
    assert guard.resolve_link(str(jail / "abs")) == str(jail / "a.txt")


def test_absolute_link_outside_is_rejected(guard, jail, tmp_path):
    os.symlink(str(tmp_path / "outside"), str(jail / "escape"))
    with pytest.raises(JailEscapeError):
        guard.resolve_link(str(jail / "escape"))


def test_relative_link_outside_is_rejected(guard, jail):
    os.symlink("../../outside/secret.txt", str(jail / "sub" / "escape"))
    with pytest.raises(JailEscapeError) as exc:
        guard.resolve_link(str(jail / "sub" / "escape"))
    assert exc.value.status_code == 400


def test_unreadable_link(guard, jail):
    with pytest.raises(SymlinkReadError) as exc:
        guard.resolve_link(str(jail / "a.txt"))
    assert exc.value.status_code == 400


def test_contains_real_follows_intermediate_links(guard, jail, tmp_path):
    os.symlink(str(tmp_path / "outside"), str(jail / "outdir"))
    assert guard.contains(str(jail / "outdir" / "secret.txt"))
    assert not guard.contains_real(str(jail / "outdir" / "secret.txt"))
    assert guard.contains_real(str(jail / "sub" / "link"))
