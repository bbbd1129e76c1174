"""Tests for the vmnetconf command line."""
import json

import pytest

from vmnetconf.cli import build_parser, main
from vmnetconf.config import ENV_VARS

NETWORKING = "VERSION=1,0\nanswer VNET_8_NAT yes\nanswer VNET_8_VIRTUAL_ADAPTER yes\n"
NETMAP = 'network0.name = "Bridged"\nnetwork0.device = "vmnet0"\nnetwork8.name = "NAT"\nnetwork8.device = "vmnet8"\n'
DHCP = """\
subnet 172.16.41.0 netmask 255.255.255.0 {
  option routers 172.16.41.2;
  host builder {
    hardware ethernet 00:50:56:3f:00:10;
    fixed-address 172.16.41.20;
  }
}
"""
APPLE_LEASES = "{\n\tname=builder\n\tip_address=192.168.64.3\n\thw_address=1,a2:4:6b:c:1:1f\n\tidentifier=1,a2:4:6b:c:1:1f\n}\n"


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    """Run every command without settings files or VMNETCONF_* variables."""
    for var in list(ENV_VARS.values()) + ["VMNETCONF_INTERFACE_PREFIX"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)


def run(capsys, *argv):
    code = main(list(argv))
    out, err = capsys.readouterr()
    return code, out, err


class TestParser:
    """Tests for the argument parser."""

    def test_command_required(self):
        """A subcommand must be given."""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args([])
        assert exc_info.value.code == 2

    def test_exclusive_queries(self):
        """--name and --device cannot be combined."""
        with pytest.raises(SystemExit) as exc_info:
            main(["netmap", "x", "--name", "nat", "--device", "vmnet8"])
        assert exc_info.value.code == 2


class TestCommands:
    """Tests for each subcommand."""

    def test_dhcp_dump(self, tmp_path, capsys):
        """Every declaration is printed."""
        path = tmp_path / "vmnetdhcp.conf"
        path.write_text(DHCP)
        code, out, _ = run(capsys, "dhcp", str(path))
        assert code == 0
        scopes = [d["scope"] for d in json.loads(out)]
        assert len(scopes) == 3

    def test_dhcp_host(self, tmp_path, capsys):
        """--host prints the declaration of that host."""
        path = tmp_path / "vmnetdhcp.conf"
        path.write_text(DHCP)
        code, out, _ = run(capsys, "dhcp", str(path), "--host", "BUILDER")
        assert code == 0
        result = json.loads(out)
        assert result["options"] == {"routers": "172.16.41.2"}

    def test_dhcp_unknown_host(self, tmp_path, capsys):
        """Lookup failures exit with status 1."""
        path = tmp_path / "vmnetdhcp.conf"
        path.write_text(DHCP)
        code, out, err = run(capsys, "dhcp", str(path), "--host", "ghost")
        assert code == 1
        assert out == ""
        assert "error:" in err

    def test_netmap_name(self, tmp_path, capsys):
        """--name lists the devices of a network."""
        path = tmp_path / "netmap.conf"
        path.write_text(NETMAP)
        code, out, _ = run(capsys, "netmap", str(path), "--name", "nat")
        assert code == 0
        assert json.loads(out) == {"name": "nat", "devices": ["vmnet8"]}

    def test_networking_device_from_env(self, tmp_path, capsys, monkeypatch):
        """The file location can come from the environment."""
        path = tmp_path / "networking"
        path.write_text(NETWORKING)
        monkeypatch.setenv("VMNETCONF_NETWORKING", str(path))
        code, out, _ = run(capsys, "networking", "--device", "vmnet8")
        assert code == 0
        assert json.loads(out) == {"device": "vmnet8", "name": "nat"}

    def test_networking_bad_version(self, tmp_path, capsys):
        """Unsupported files exit with status 1."""
        path = tmp_path / "networking"
        path.write_text("VERSION=2,0\n")
        code, _, err = run(capsys, "networking", str(path))
        assert code == 1
        assert "expected version 1.0" in err

    def test_apple_leases(self, tmp_path, capsys):
        """--apple reads the bootpd dialect."""
        path = tmp_path / "dhcpd_leases"
        path.write_text(APPLE_LEASES)
        code, out, _ = run(capsys, "leases", str(path), "--apple")
        assert code == 0
        result = json.loads(out)
        assert result["errors"] == []
        assert result["entries"][0]["hw_address"] == "a2:04:6b:0c:01:1f"

    def test_missing_file(self, tmp_path, capsys):
        """An absent file exits with status 1."""
        code, _, err = run(capsys, "netmap", str(tmp_path / "absent.conf"))
        assert code == 1
        assert "error:" in err

    def test_unconfigured_file(self, capsys):
        """Without a file argument or setting the command fails cleanly."""
        code, _, err = run(capsys, "leases")
        assert code == 1
        assert "no dhcpd_leases file configured" in err
