"""
Local network configuration

Configuration is read from a JSON file, merged with command line overrides
and completed from the module defaults by resolve_config().
"""

import copy
import json
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from .errors import ConfigError, InvalidNumber, NameRestrictionConflict, ZeroAccounts

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "localnet.json"
DEFAULT_HOME_DIRECTORY = ".localnet"

DEFAULT_ACCOUNTS = 10
DEFAULT_CHAIN_ID = "chain-local"
DEFAULT_RPC_PORT = 26657
DEFAULT_GRPC_PORT = 9090
DEFAULT_P2P_PORT = 26656
DEFAULT_API_PORT = 1317
DEFAULT_BIND_ADDRESS = "localhost"
DEFAULT_HASH_SUPPLY = "100000000000000000000"
DEFAULT_ROOT_NAMES = [
    {"name": "pio", "restrict": True},
    {"name": "pb", "restrict": False},
    {"name": "io", "restrict": True},
    {"name": "provenance", "restrict": True},
]

HASH_DENOM = "nhash"


class MarkerAccess(str, Enum):
    MINT = "mint"
    BURN = "burn"
    ADMIN = "admin"
    WITHDRAW = "withdraw"
    DEPOSIT = "deposit"


# order used for the native hash marker
HASH_MARKER_ACCESS = [
    MarkerAccess.ADMIN,
    MarkerAccess.BURN,
    MarkerAccess.DEPOSIT,
    MarkerAccess.MINT,
    MarkerAccess.WITHDRAW,
]


class RootName:
    """A genesis root name record"""

    def __init__(self, name: str, restrict: bool = False):
        self.name = name
        self.restrict = restrict

    def to_dict(self):
        return {"name": self.name, "restrict": self.restrict}

    @classmethod
    def from_dict(cls, data: dict):
        if "name" not in data:
            raise ConfigError(f"Root name entry is missing 'name': {data!r}")
        restrict = data.get("restrict", False)
        if not isinstance(restrict, bool):
            raise ConfigError(f"Root name '{data['name']}' has a non-boolean 'restrict': {restrict!r}")
        return cls(name=str(data["name"]), restrict=restrict)


class MarkerConfig:
    """A genesis marker record"""

    def __init__(self, denom: str, total_supply: str, manager: str,
                 access: Optional[List[MarkerAccess]] = None):
        self.denom = denom
        self.total_supply = total_supply
        self.manager = manager
        self.access = list(access or [])

    @property
    def supply(self) -> int:
        return parse_integer(f"markers[{self.denom}].totalSupply", self.total_supply)

    def to_dict(self):
        return {
            "denom": self.denom,
            "totalSupply": self.total_supply,
            "manager": self.manager,
            "access": [access.value for access in self.access],
        }

    @classmethod
    def from_dict(cls, data: dict):
        for key in ("denom", "totalSupply", "manager"):
            if key not in data:
                raise ConfigError(f"Marker entry is missing '{key}': {data!r}")
        access = []
        for value in data.get("access", []):
            try:
                access.append(MarkerAccess(value))
            except ValueError:
                raise ConfigError(f"Unknown marker access '{value}' for marker '{data['denom']}'")
        marker = cls(
            denom=str(data["denom"]),
            total_supply=str(data["totalSupply"]),
            manager=str(data["manager"]),
            access=access,
        )
        # fail early on a non-integer supply
        marker.supply
        return marker


class PortConfig:

    def __init__(self, rpc: int = DEFAULT_RPC_PORT, grpc: int = DEFAULT_GRPC_PORT):
        self.rpc = rpc
        self.grpc = grpc

    def to_dict(self):
        return {"rpc": self.rpc, "grpc": self.grpc}


class LocalnetConfig:
    """Fully resolved configuration of the local network"""

    def __init__(self, accounts: int = DEFAULT_ACCOUNTS, chain_id: str = DEFAULT_CHAIN_ID,
                 ports: Optional[PortConfig] = None, hash_supply: str = DEFAULT_HASH_SUPPLY,
                 root_names: Optional[List[RootName]] = None,
                 markers: Optional[List[MarkerConfig]] = None,
                 mnemonic: Optional[str] = None,
                 bind_address: str = DEFAULT_BIND_ADDRESS):
        self.mnemonic = mnemonic
        self.accounts = accounts
        self.chain_id = chain_id
        self.ports = ports or PortConfig()
        self.hash_supply = hash_supply
        self.root_names = list(root_names) if root_names is not None else [
            RootName.from_dict(entry) for entry in DEFAULT_ROOT_NAMES
        ]
        self.markers = list(markers or [])
        self.bind_address = bind_address

    @property
    def total_supply(self) -> int:
        return parse_integer("hashSupply", self.hash_supply)

    def to_dict(self) -> Dict:
        """Convert to the JSON form used by config and lock files"""
        data = {}
        if self.mnemonic is not None:
            data["mnemonic"] = self.mnemonic
        data.update({
            "accounts": self.accounts,
            "chainId": self.chain_id,
            "ports": self.ports.to_dict(),
            "hashSupply": self.hash_supply,
            "rootNames": [root_name.to_dict() for root_name in self.root_names],
            "markers": [marker.to_dict() for marker in self.markers],
            "bindAddress": self.bind_address,
        })
        return data

    @classmethod
    def from_dict(cls, data: dict):
        ports = data.get("ports") or {}
        config = cls(
            mnemonic=data.get("mnemonic"),
            accounts=parse_integer("accounts", data.get("accounts", DEFAULT_ACCOUNTS)),
            chain_id=str(data.get("chainId", DEFAULT_CHAIN_ID)),
            ports=PortConfig(
                rpc=parse_integer("ports.rpc", ports.get("rpc", DEFAULT_RPC_PORT)),
                grpc=parse_integer("ports.grpc", ports.get("grpc", DEFAULT_GRPC_PORT)),
            ),
            hash_supply=str(data.get("hashSupply", DEFAULT_HASH_SUPPLY)),
            root_names=[RootName.from_dict(entry) for entry in data.get("rootNames", DEFAULT_ROOT_NAMES)],
            markers=[MarkerConfig.from_dict(entry) for entry in data.get("markers", [])],
            bind_address=str(data.get("bindAddress", DEFAULT_BIND_ADDRESS)),
        )
        config.validate()
        return config

    def validate(self):
        if self.accounts == 0:
            raise ZeroAccounts()
        if self.accounts < 0:
            raise InvalidNumber("accounts", self.accounts)
        for field, port in (("ports.rpc", self.ports.rpc), ("ports.grpc", self.ports.grpc)):
            if not 0 < port < 65536:
                raise InvalidNumber(field, port)
        self.total_supply

    def __eq__(self, other):
        if not isinstance(other, LocalnetConfig):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"LocalnetConfig(chain_id={self.chain_id!r}, accounts={self.accounts})"


def default_config_dict() -> Dict:
    """Defaults as a JSON dict, suitable as the base layer of resolve_config()"""
    return {
        "accounts": DEFAULT_ACCOUNTS,
        "chainId": DEFAULT_CHAIN_ID,
        "ports": {"rpc": DEFAULT_RPC_PORT, "grpc": DEFAULT_GRPC_PORT},
        "hashSupply": DEFAULT_HASH_SUPPLY,
        "rootNames": copy.deepcopy(DEFAULT_ROOT_NAMES),
        "markers": [],
        "bindAddress": DEFAULT_BIND_ADDRESS,
    }


def parse_integer(field: str, value) -> int:
    """Parse an exact integer, rejecting floats, bools and negative values"""
    if isinstance(value, bool):
        raise InvalidNumber(field, value)
    if isinstance(value, int):
        result = value
    elif isinstance(value, str) and re.fullmatch(r"[+-]?[0-9]+", value.strip()):
        result = int(value.strip())
    else:
        raise InvalidNumber(field, value)
    if result < 0:
        raise InvalidNumber(field, value)
    return result


def split_names(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [name.strip() for name in value if name and name.strip()]


def _add_root_names(root_names: List[Dict], names: List[str], restrict: bool):
    for name in names:
        existing = next((entry for entry in root_names if entry["name"] == name), None)
        if existing is not None:
            if bool(existing.get("restrict", False)) != restrict:
                raise NameRestrictionConflict(name, bool(existing.get("restrict", False)))
            continue
        root_names.append({"name": name, "restrict": restrict})


def resolve_config(file_config: Optional[Dict] = None, overrides: Optional[Dict] = None,
                   defaults: Optional[Dict] = None) -> LocalnetConfig:
    """
    Merge defaults, the loaded config file and command overrides.

    Overrides use the command line names: mnemonic, accounts, chain_id,
    rpc_port, grpc_port, hash_supply, bind_address, restricted_root_names
    and unrestricted_root_names. None means "not given".
    """
    merged = copy.deepcopy(defaults if defaults is not None else default_config_dict())
    for key, value in copy.deepcopy(file_config or {}).items():
        if key == "ports" and isinstance(value, dict):
            merged.setdefault("ports", {}).update(value)
        elif value is not None:
            merged[key] = value

    overrides = overrides or {}
    if overrides.get("mnemonic") is not None:
        merged["mnemonic"] = overrides["mnemonic"]
    if overrides.get("accounts") is not None:
        merged["accounts"] = parse_integer("accounts", overrides["accounts"])
    if overrides.get("chain_id") is not None:
        merged["chainId"] = overrides["chain_id"]
    if overrides.get("rpc_port") is not None:
        merged.setdefault("ports", {})["rpc"] = parse_integer("rpcPort", overrides["rpc_port"])
    if overrides.get("grpc_port") is not None:
        merged.setdefault("ports", {})["grpc"] = parse_integer("grpcPort", overrides["grpc_port"])
    if overrides.get("hash_supply") is not None:
        parse_integer("hashSupply", overrides["hash_supply"])
        merged["hashSupply"] = str(overrides["hash_supply"]).strip()
    if overrides.get("bind_address") is not None:
        merged["bindAddress"] = overrides["bind_address"]

    root_names = merged.setdefault("rootNames", [])
    _add_root_names(root_names, split_names(overrides.get("restricted_root_names")), True)
    _add_root_names(root_names, split_names(overrides.get("unrestricted_root_names")), False)

    return LocalnetConfig.from_dict(merged)


def load_config_file(config_file, required: bool = False) -> Dict:
    """Load a JSON config file; a missing optional file yields an empty config"""
    path = Path(config_file)
    if not path.exists():
        if required:
            raise ConfigError(f"Unable to open config file '{config_file}'")
        logger.debug(f"Config file {config_file} not found, using defaults")
        return {}

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file '{config_file}' is not valid JSON: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{config_file}' must contain a JSON object")
    logger.debug(f"Loaded config file {config_file}")
    return data
