import dataclasses
import os

import pytest

from jailserve.config import IndexConfig
from jailserve.common.target import UniTarget, UniProto
from jailserve.examples.indexserver import get_parser


def test_create_normalizes(jail):
    config = IndexConfig.create("files//pub/", str(jail) + "/./", "")
    assert config.proxy_root == "/files/pub"
    assert config.jail_root == str(jail)
    assert config.accel_redirect_root is None
    assert not config.accel_enabled


def test_relative_jail_root_becomes_absolute(jail, monkeypatch):
    monkeypatch.chdir(str(jail))
    assert IndexConfig.create("/", ".").jail_root == os.getcwd()


def test_config_is_immutable(config):
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.jail_root = "/"


def test_jail_root_must_be_a_directory(jail):
    with pytest.raises(ValueError):
        IndexConfig.create("/", str(jail / "missing"))
    with pytest.raises(ValueError):
        IndexConfig.create("/", str(jail / "a.txt"))


def test_from_args(jail):
    args = get_parser().parse_args(["-p", "/files", "-r", str(jail), "--xa", "/internal"])
    config = IndexConfig.from_args(args)
    assert config.proxy_root == "/files"
    assert config.accel_redirect_root == "/internal"
    assert config.accel_enabled


def test_parser_defaults():
    args = get_parser().parse_args([])
    assert args.listen_type == "tcp"
    assert args.address == ":8080"
    assert args.proxy_root == "/"
    assert args.jail_root == "."
    assert args.accel_redirect == ""


@pytest.mark.parametrize("address, host, port", [
    (":8080", "0.0.0.0", 8080),
    ("127.0.0.1:9000", "127.0.0.1", 9000),
    ("[::1]:9000", "::1", 9000),
    ("localhost:80", "localhost", 80),
])
def test_tcp_listen_target(address, host, port):
    target = UniTarget.from_listen("tcp", address)
    assert target.protocol == UniProto.SERVER_TCP
    assert target.get_ip_or_hostname() == host
    assert target.port == port


def test_unix_listen_target():
    target = UniTarget.from_listen("unix", "/run/index.sock")
    assert target.protocol == UniProto.SERVER_UNIX
    assert target.path == "/run/index.sock"
    assert str(target) == "unix:/run/index.sock"


@pytest.mark.parametrize("socket_type, address", [("udp", ":53"), ("tcp", "8080"), ("tcp", ":http"), ("tcp", ":70000")])
def test_bad_listen_target(socket_type, address):
    with pytest.raises(ValueError):
        UniTarget.from_listen(socket_type, address)
