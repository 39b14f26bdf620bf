"""Single-node Provenance blockchain for local development"""

__version__ = "1.0.0"

from .config import LocalnetConfig, load_config_file, resolve_config
from .errors import LocalnetError
from .genesis import GenesisPlan, plan_genesis
from .keys import KeyIdentity, derive_key
from .node_manager import LocalnetManager, StartReport

__all__ = [
    "GenesisPlan",
    "KeyIdentity",
    "LocalnetConfig",
    "LocalnetError",
    "LocalnetManager",
    "StartReport",
    "derive_key",
    "load_config_file",
    "plan_genesis",
    "resolve_config",
]
