"""DHCP server configuration reader.

Pipeline:
    characters -> tokenize_dhcp_config -> parse_dhcp_config (ParseTree)
    -> flatten_dhcp_config (DeclarationTree) -> create_declaration per scope

Usage:
    from vmnetconf.dhcp import read_dhcp_configuration

    with open("vmnetdhcp.conf", "rb") as fd:
        config = read_dhcp_configuration(fd)
    subnet = config.subnet_by_address("172.16.10.4")
"""
from .declarations import (
    ConfigDeclaration,
    DhcpConfiguration,
    create_declaration,
    flatten_dhcp_config,
    read_dhcp_configuration,
    walk_declarations,
)
from .parser import parse_declaration, parse_dhcp_config, parse_parameter
from .schema import (
    Address4,
    Address6,
    Boolean,
    ClientMatch,
    Declaration,
    DeclarationTree,
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
    ParseTree,
    Pool,
    Prefix6,
    Range4,
    Range6,
    ScopeNode,
    SharedNetwork,
    Subnet4,
    Subnet6,
    TokenParameter,
)
from .tokenizer import tokenize_dhcp_config

__all__ = [
    # Reader and model
    "read_dhcp_configuration",
    "DhcpConfiguration",
    "ConfigDeclaration",
    # Pipeline stages
    "tokenize_dhcp_config",
    "parse_dhcp_config",
    "parse_parameter",
    "parse_declaration",
    "flatten_dhcp_config",
    "create_declaration",
    "walk_declarations",
    # Trees
    "TokenParameter",
    "ScopeNode",
    "ParseTree",
    "Declaration",
    "DeclarationTree",
    # Parameters
    "Include",
    "Option",
    "Grant",
    "GrantPolicy",
    "Address4",
    "Address6",
    "Hardware",
    "Boolean",
    "ClientMatch",
    "Range4",
    "Range6",
    "Prefix6",
    "Other",
    "Expression",
    # Identities
    "GlobalScope",
    "SharedNetwork",
    "Subnet4",
    "Subnet6",
    "Host",
    "Pool",
    "Group",
]
