import os

import pytest

from jailserve.config import IndexConfig
from jailserve.index.dispatcher import ProxyDispatcher


@pytest.fixture
def jail(tmp_path):
    """
    jail/
      a.txt          512 bytes
      big.bin        2 MiB
      sub/file.txt
      sub/link    -> ../other
      other/
      .hidden
    outside/secret.txt
    """
    root = tmp_path / "jail"
    root.mkdir()
    (root / "a.txt").write_bytes(b"a" * 512)
    (root / "big.bin").write_bytes(b"\0" * 2097152)
    (root / "sub").mkdir()
    (root / "sub" / "file.txt").write_text("hello world\n")
    (root / "other").mkdir()
    (root / ".hidden").write_text("nope")
    os.symlink("../other", str(root / "sub" / "link"))

    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.txt").write_text("secret")
    return root


@pytest.fixture
def config(jail):
    return IndexConfig.create("/files", str(jail))


@pytest.fixture
def dispatcher(config):
    return ProxyDispatcher(config)
