"""Tests for the DHCP server configuration reader."""
import io
import ipaddress
import socket

import pytest

from vmnetconf.dhcp import (
    Address4,
    Boolean,
    ClientMatch,
    DhcpConfiguration,
    Expression,
    GlobalScope,
    Grant,
    GrantPolicy,
    Group,
    Hardware,
    Host,
    Include,
    Option,
    Other,
    Pool,
    Prefix6,
    Range4,
    Range6,
    SharedNetwork,
    Subnet4,
    Subnet6,
    TokenParameter,
    create_declaration,
    flatten_dhcp_config,
    parse_declaration,
    parse_dhcp_config,
    parse_parameter,
    read_dhcp_configuration,
    tokenize_dhcp_config,
)
from vmnetconf.errors import (
    AddressError,
    AmbiguousDeclarationError,
    DeclarationNotFoundError,
    ParameterError,
    ParseError,
)
from vmnetconf.utils import strip_comments

SAMPLE_CONFIG = """\
# Configuration file for the vmnet8 DHCP server
allow unknown-clients;
default-lease-time 1800;
max-lease-time 7200;
option domain-name "localdomain";

subnet 172.16.41.0 netmask 255.255.255.0 {
    range 172.16.41.128 172.16.41.254;
    option broadcast-address 172.16.41.255;
    option domain-name "vm.local";      # overrides the global one
    default-lease-time 600;
    host builder {
        hardware ethernet 00:0c:29:4a:5e:11;
        fixed-address 172.16.41.20;
        deny unknown-clients;
    }
}
subnet 192.168.56.0 netmask 255.255.255.0 {
    option routers 192.168.56.1;
}
"""


def tokens_of(text):
    return list(tokenize_dhcp_config(strip_comments(text)))


def read(text):
    return read_dhcp_configuration(io.StringIO(text))


def param(keyword, *operands):
    return parse_parameter(TokenParameter(name=keyword, operands=list(operands)))


class TestTokenizer:
    """Tests for tokenize_dhcp_config."""

    def test_structural_tokens(self):
        """Braces and semicolons are tokens of their own."""
        assert tokens_of("subnet 10.0.0.0 netmask 255.0.0.0 {range 10.0.0.1;}") == [
            "subnet", "10.0.0.0", "netmask", "255.0.0.0", "{",
            "range", "10.0.0.1", ";", "}",
        ]

    def test_quotes_are_opaque(self):
        """Separators inside quotes do not split the token."""
        assert tokens_of('option domain-name "a b;{c}";') == [
            "option", "domain-name", '"a b;{c}"', ";",
        ]

    def test_trailing_word_flushed(self):
        """A word pending at end of input is emitted."""
        assert tokens_of("authoritative") == ["authoritative"]

    def test_comments_removed(self):
        """Comment text never reaches the tokenizer."""
        assert tokens_of("a; # b c;\nd;") == ["a", ";", "d", ";"]


class TestTreeParser:
    """Tests for parse_dhcp_config."""

    def test_builds_nested_scopes(self):
        """Scopes nest under the implicit global root."""
        tree = parse_dhcp_config(tokens_of(SAMPLE_CONFIG))
        assert len(tree.nodes) == 4
        assert tree.root.parent is None
        assert tree.root.children == [1, 3]
        assert tree.nodes[2].parent == 1
        assert tree.nodes[2].ident == TokenParameter("host", ["builder"])
        assert [p.name for p in tree.root.params] == [
            "allow", "default-lease-time", "max-lease-time", "option",
        ]

    def test_empty_statements_skipped(self):
        """Stray terminators do not produce nameless statements."""
        tree = parse_dhcp_config(tokens_of("authoritative;;\ngroup { ; option a b; };\n"))
        assert tree.root.params == [TokenParameter("authoritative", [])]
        assert tree.nodes[1].params == [TokenParameter("option", ["a", "b"])]

        config = read("authoritative;;\ngroup { option a b; };\n")
        assert config.global_declaration().attributes == {"authoritative": True}

    def test_close_global_scope(self):
        """A stray closing brace at the top level is rejected."""
        with pytest.raises(ParseError, match="refused to close the global declaration"):
            parse_dhcp_config(tokens_of("option a b; }"))

    def test_unterminated_before_close(self):
        """A statement without ';' before '}' is rejected."""
        with pytest.raises(ParseError, match="left unterminated"):
            parse_dhcp_config(tokens_of("group { authoritative }"))

    def test_unterminated_at_eof(self):
        """Tokens pending at end of input are rejected."""
        with pytest.raises(ParseError, match="left unterminated"):
            parse_dhcp_config(tokens_of("authoritative"))

    def test_unclosed_scope(self):
        """A scope still open at end of input is rejected."""
        with pytest.raises(ParseError, match="left unclosed: host builder"):
            parse_dhcp_config(tokens_of("host builder { fixed-address 10.0.0.1;"))


class TestParameters:
    """Tests for parse_parameter keyword rules."""

    def test_option(self):
        """option takes a name and a value."""
        result = param("option", "domain-name", '"example"')
        assert result == Option("domain-name", '"example"')
        assert str(result) == 'option:domain-name="example"'

    def test_option_arity(self):
        """option with more than two operands is rejected."""
        with pytest.raises(ParameterError) as exc_info:
            param("option", "routers", "10.0.0.1,", "10.0.0.2")
        assert exc_info.value.keyword == "option"
        assert exc_info.value.operands == ["routers", "10.0.0.1,", "10.0.0.2"]

    def test_include(self):
        """include takes exactly one file name."""
        assert param("include", '"extra.conf"') == Include('"extra.conf"')
        with pytest.raises(ParameterError):
            param("include")

    def test_grant_any_case(self):
        """Grant verbs are matched in any case and lower-cased."""
        assert param("ALLOW", "booting") == Grant("allow", "booting")
        assert param("deny", "unknown", "clients") == Grant("deny", "unknown clients")

    def test_grant_without_attribute(self):
        """A grant needs an attribute."""
        with pytest.raises(ParameterError):
            param("ignore")

    def test_range(self):
        """range takes one or two IPv4 addresses."""
        result = param("range", "10.0.0.10", "10.0.0.20")
        assert result == Range4(ipaddress.IPv4Address("10.0.0.10"), ipaddress.IPv4Address("10.0.0.20"))
        assert str(result) == "range4:10.0.0.10-10.0.0.20"

    def test_range_bootp_single(self):
        """A bootp marker and a single address give start == end."""
        result = param("range", "dynamic-bootp", "10.0.0.10")
        assert result.start == result.end == ipaddress.IPv4Address("10.0.0.10")

    def test_range_invalid_address(self):
        """Non-IPv4 operands are rejected."""
        with pytest.raises(ParameterError, match="range"):
            param("range", "10.0.0.10", "fe80::1")

    def test_range6_cidr(self):
        """A CIDR range6 spans the network and all-ones host addresses."""
        result = param("range6", "2001:db8:0:1::55/64")
        assert result == Range6(
            ipaddress.IPv6Address("2001:db8:0:1::"),
            ipaddress.IPv6Address("2001:db8:0:1:ffff:ffff:ffff:ffff"),
        )

    def test_range6_forms(self):
        """range6 accepts a single address, a temporary address, or a pair."""
        low = ipaddress.IPv6Address("2001:db8::10")
        high = ipaddress.IPv6Address("2001:db8::20")
        assert param("range6", "2001:db8::10") == Range6(low, low)
        assert param("range6", "2001:db8::10", "temporary") == Range6(low, low)
        assert param("range6", "2001:db8::10", "2001:db8::20") == Range6(low, high)

    def test_prefix6(self):
        """prefix6 takes two IPv6 addresses and a bit count."""
        result = param("prefix6", "2001:db8:100::", "2001:db8:f00::", "56")
        assert isinstance(result, Prefix6)
        assert result.bits == 56
        with pytest.raises(ParameterError):
            param("prefix6", "2001:db8:100::", "2001:db8:f00::", "200")

    def test_hardware(self):
        """hardware takes a class and a six-octet address."""
        result = param("hardware", "ethernet", "00:0C:29:4a:5e:11")
        assert result == Hardware("ethernet", b"\x00\x0c\x29\x4a\x5e\x11")
        assert str(result) == "hardware-address:ethernet[00:0c:29:4a:5e:11]"

    @pytest.mark.parametrize("address", ["00:0c:29:4a:5e", "00:0c:29:4a:5e:zz", "00:0c:29:4a:5e:111"])
    def test_hardware_invalid(self, address):
        """Malformed hardware addresses are rejected."""
        with pytest.raises(ParameterError):
            param("hardware", "ethernet", address)

    def test_fixed_address_list(self):
        """fixed-address splits comma separated addresses."""
        assert param("fixed-address", "10.0.0.1,", "builder.local") == Address4(("10.0.0.1", "builder.local"))

    def test_host_identifier(self):
        """host-identifier option <name> <data> is a client match."""
        assert param("host-identifier", "option", "dhcp6.client-id", "00:01:00:01") == ClientMatch(
            "dhcp6.client-id", "00:01:00:01"
        )
        with pytest.raises(ParameterError):
            param("host-identifier", "hardware", "dhcp6.client-id", "00:01")

    def test_boolean(self):
        """Bare keywords are true and `not` makes them false."""
        assert param("authoritative") == Boolean("authoritative", True)
        assert param("not", "authoritative") == Boolean("authoritative", False)
        assert str(param("not", "authoritative")) == "boolean:authoritative=false"

    def test_expression(self):
        """An `=` operand starts an expression."""
        result = param("ddns-hostname", "=", "concat(", '"vm-",', "host)")
        assert result == Expression("ddns-hostname", 'concat("vm-",host)')

    def test_other(self):
        """Unknown keywords with one operand keep their value."""
        assert param("default-lease-time", "600") == Other("default-lease-time", "600")

    def test_other_arity(self):
        """Unknown keywords with several operands are rejected."""
        with pytest.raises(ParameterError):
            param("ddns-update-style", "interim", "extra")


class TestDeclarations:
    """Tests for parse_declaration."""

    def test_identities(self):
        """Every declaration keyword yields its identity."""
        assert parse_declaration(TokenParameter("group")) == Group()
        assert parse_declaration(TokenParameter("pool")) == Pool()
        assert parse_declaration(TokenParameter("host", ["builder"])) == Host("builder")
        assert parse_declaration(TokenParameter("shared-network", ["lab"])) == SharedNetwork("lab")

    def test_subnet(self):
        """subnet requires an address, `netmask` and a dotted mask."""
        result = parse_declaration(TokenParameter("subnet", ["172.16.41.0", "netmask", "255.255.255.0"]))
        assert result == Subnet4(ipaddress.IPv4Network("172.16.41.0/24"))
        assert str(result) == "{subnet4 172.16.41.0/24}"

    @pytest.mark.parametrize("operands", [
        ["172.16.41.0", "mask", "255.255.255.0"],
        ["172.16.41.0", "netmask", "255.255.255"],
        ["172.16.41.0", "netmask", "255.255.255.x"],
        ["172.16.41.0"],
    ])
    def test_subnet_invalid(self, operands):
        """Malformed subnet declarations are rejected."""
        with pytest.raises(ParseError):
            parse_declaration(TokenParameter("subnet", operands))

    def test_subnet6(self):
        """subnet6 requires address/prefix."""
        result = parse_declaration(TokenParameter("subnet6", ["2001:db8:0:1::/64"]))
        assert result == Subnet6(ipaddress.IPv6Network("2001:db8:0:1::/64"))
        with pytest.raises(ParseError):
            parse_declaration(TokenParameter("subnet6", ["2001:db8:0:1::"]))

    def test_unknown_declaration(self):
        """Unknown or nameless declarations are rejected."""
        with pytest.raises(ParseError, match="invalid declaration : class"):
            parse_declaration(TokenParameter("class", ['"vmware"']))
        with pytest.raises(ParseError):
            parse_declaration(TokenParameter())

    def test_nameless_scope_in_file(self):
        """A nested `{` without a declaration fails the whole read."""
        with pytest.raises(ParseError):
            read("{ authoritative; }")


class TestInheritance:
    """Tests for flattening and inheritance resolution."""

    @pytest.fixture
    def tree(self):
        return flatten_dhcp_config(parse_dhcp_config(tokens_of(SAMPLE_CONFIG)))

    def test_flatten_preserves_indices(self, tree):
        """Declarations keep the raw node indices."""
        assert isinstance(tree.root.identity, GlobalScope)
        assert [d.index for d in tree.declarations] == [0, 1, 2, 3]
        assert [d.short() for d in tree.ancestry(2)] == [
            "{host name:builder}", "{subnet4 172.16.41.0/24}", "{global}",
        ]

    def test_render(self, tree):
        """render() lists the parent, parameters and children."""
        text = tree.render(1)
        assert text.startswith("{subnet4 172.16.41.0/24} parent:{global}\n")
        assert "-> {host name:builder}" in text

    def test_child_overrides_parent(self, tree):
        """Deeper scopes overwrite scalar values of shallower ones."""
        host = create_declaration(tree, 2)
        assert host.options["domain-name"] == '"vm.local"'
        assert host.parameters["default-lease-time"] == "600"
        assert host.parameters["max-lease-time"] == "7200"
        assert host.grants["unknown-clients"] is GrantPolicy.DENY

    def test_parent_unaffected_by_child(self, tree):
        """Only ancestors contribute to a declaration."""
        root = create_declaration(tree, 0)
        assert root.options["domain-name"] == '"localdomain"'
        assert root.grants["unknown-clients"] is GrantPolicy.ALLOW
        assert "broadcast-address" not in root.options

    def test_addresses_accumulate(self, tree):
        """Address parameters accumulate from the root down."""
        host = create_declaration(tree, 2)
        assert [type(a) for a in host.address] == [Range4, Hardware, Address4]
        assert host.identities == [GlobalScope(), Subnet4(ipaddress.IPv4Network("172.16.41.0/24")), Host("builder")]
        assert host.identity == Host("builder")

    def test_hostid_accumulates(self):
        """Client matches from every level are kept."""
        config = read(
            "group {\n"
            "  host-identifier option agent.circuit-id a;\n"
            "  host builder { host-identifier option dhcp6.client-id b; }\n"
            "}\n"
        )
        host = config.host_by_name("builder")
        assert host.hostid == [
            ClientMatch("agent.circuit-id", "a"),
            ClientMatch("dhcp6.client-id", "b"),
        ]

    def test_idempotent(self, tree):
        """Resolving the same declaration twice gives equal results."""
        assert create_declaration(tree, 2) == create_declaration(tree, 2)


class TestDhcpConfiguration:
    """Tests for the DhcpConfiguration queries."""

    @pytest.fixture
    def config(self):
        return read_dhcp_configuration(io.BytesIO(SAMPLE_CONFIG.encode()))

    def test_one_entry_per_scope(self, config):
        """One resolved declaration per scope, in pre-order."""
        assert isinstance(config, DhcpConfiguration)
        assert len(config) == 4
        assert [str(c.identity) for c in config] == [
            "{global}",
            "{subnet4 172.16.41.0/24}",
            "{host name:builder}",
            "{subnet4 192.168.56.0/24}",
        ]

    def test_global_declaration(self, config):
        """The global scope is the first entry."""
        assert config.global_declaration().identities == [GlobalScope()]

    def test_global_declaration_empty(self):
        """An empty configuration has no global scope."""
        with pytest.raises(RuntimeError):
            DhcpConfiguration([]).global_declaration()

    def test_empty_configuration(self):
        """An empty file holds only the global scope and matches nothing."""
        config = read("")
        assert len(config) == 1
        assert config.global_declaration().identities == [GlobalScope()]
        with pytest.raises(DeclarationNotFoundError):
            config.subnet_by_address("10.0.0.1")
        with pytest.raises(DeclarationNotFoundError):
            config.host_by_name("x")

    def test_subnet_by_address(self, config):
        """The subnet containing an address is found."""
        subnet = config.subnet_by_address("172.16.41.20")
        assert subnet.identity == Subnet4(ipaddress.IPv4Network("172.16.41.0/24"))
        assert subnet.options["broadcast-address"] == "172.16.41.255"

    def test_subnet_by_address_missing(self, config):
        """Addresses outside every subnet raise DeclarationNotFoundError."""
        with pytest.raises(DeclarationNotFoundError):
            config.subnet_by_address("10.0.0.1")

    def test_subnet_by_address_invalid(self, config):
        """Non-literal addresses raise AddressError."""
        with pytest.raises(AddressError):
            config.subnet_by_address("builder")

    def test_subnet_by_address_ambiguous(self):
        """Overlapping subnets make the lookup ambiguous."""
        config = read(
            "subnet 10.0.0.0 netmask 255.0.0.0 {}\n"
            "subnet 10.1.0.0 netmask 255.255.0.0 {}\n"
        )
        with pytest.raises(AmbiguousDeclarationError) as exc_info:
            config.subnet_by_address("10.1.2.3")
        assert len(exc_info.value.matches) == 2

    def test_subnet6_by_address(self):
        """IPv6 subnets are searched as well."""
        config = read("subnet6 2001:db8:0:1::/64 { range6 2001:db8:0:1::/64; }")
        assert isinstance(config.subnet_by_address("2001:db8:0:1::99").identity, Subnet6)

    def test_host_by_name(self, config):
        """Hosts are found regardless of case."""
        host = config.host_by_name("BUILDER")
        assert host.hardware() == b"\x00\x0c\x29\x4a\x5e\x11"
        assert host.ip4() == ipaddress.IPv4Address("172.16.41.20")

    def test_host_by_name_missing(self, config):
        """Unknown hosts raise DeclarationNotFoundError."""
        with pytest.raises(DeclarationNotFoundError):
            config.host_by_name("ghost")

    def test_host_by_name_ambiguous(self):
        """Duplicate host names make the lookup ambiguous."""
        config = read("host a { fixed-address 10.0.0.1; }\nhost A { fixed-address 10.0.0.2; }\n")
        with pytest.raises(AmbiguousDeclarationError):
            config.host_by_name("a")

    def test_to_list(self, config):
        """Every declaration serializes to a dict."""
        entries = config.to_list()
        assert entries[2]["scope"] == ["{global}", "{subnet4 172.16.41.0/24}", "{host name:builder}"]
        assert entries[2]["grants"] == {"unknown-clients": "deny"}


class TestAddressAccessors:
    """Tests for ip4(), ip6() and hardware()."""

    def test_ip4_several(self):
        """More than one fixed address is an error."""
        config = read("host a { fixed-address 10.0.0.1, 10.0.0.2; }")
        with pytest.raises(AddressError, match="more than one"):
            config.host_by_name("a").ip4()

    def test_ip4_none(self):
        """No fixed address is an error."""
        config = read("host a { hardware ethernet 00:0c:29:4a:5e:11; }")
        with pytest.raises(AddressError, match="no IPv4 address"):
            config.host_by_name("a").ip4()

    def test_ip4_resolves_host_name(self, monkeypatch):
        """Host names are resolved to an address."""
        def fake_getaddrinfo(host, port, family=0, *args, **kwargs):
            assert host == "builder.local"
            return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("172.16.41.30", 0))]

        monkeypatch.setattr(socket, "getaddrinfo", fake_getaddrinfo)
        config = read("host a { fixed-address builder.local; }")
        assert config.host_by_name("a").ip4() == ipaddress.IPv4Address("172.16.41.30")

    def test_ip4_unresolvable(self, monkeypatch):
        """Resolution failures raise AddressError."""
        def fake_getaddrinfo(*args, **kwargs):
            raise socket.gaierror("not found")

        monkeypatch.setattr(socket, "getaddrinfo", fake_getaddrinfo)
        config = read("host a { fixed-address nowhere.invalid; }")
        with pytest.raises(AddressError, match="unable to resolve"):
            config.host_by_name("a").ip4()

    def test_ip6(self):
        """fixed-address6 feeds ip6()."""
        config = read("host a { fixed-address6 2001:db8::5; }")
        assert config.host_by_name("a").ip6() == ipaddress.IPv6Address("2001:db8::5")

    def test_hardware_none(self):
        """No hardware address is an error."""
        config = read("host a { fixed-address 10.0.0.1; }")
        with pytest.raises(AddressError, match="no hardware address"):
            config.host_by_name("a").hardware()

    def test_hardware_inherited_twice(self):
        """Hardware addresses from a group and its host are both counted."""
        config = read(
            "group { hardware ethernet 00:0c:29:00:00:01;\n"
            "  host a { hardware ethernet 00:0c:29:00:00:02; }\n"
            "}\n"
        )
        with pytest.raises(AddressError, match="more than one"):
            config.host_by_name("a").hardware()
