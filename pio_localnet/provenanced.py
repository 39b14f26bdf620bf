"""
Command surface of the provenanced binary

Each method runs one synchronous provenanced invocation against the managed
home directory. A non-zero exit raises ProvisioningError; nothing is retried.
"""

import logging
import os
import platform
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from .errors import ProvisioningError

logger = logging.getLogger(__name__)

PROVENANCED_BINARY = "provenanced"
KEYRING_BACKEND = "test"

ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
}


def get_arch() -> str:
    arch = platform.machine().lower()
    return ARCH_ALIASES.get(arch, arch)


def resolve_binary(search_dir=None) -> str:
    """Locate provenanced: $PROVENANCED_BINARY, then bin/<arch>/<os>/, then PATH"""
    explicit = os.environ.get("PROVENANCED_BINARY")
    if explicit:
        return explicit

    base = Path(search_dir) if search_dir is not None else Path.cwd()
    bundled = base / "bin" / get_arch() / platform.system().lower() / PROVENANCED_BINARY
    if bundled.exists():
        return str(bundled)

    on_path = shutil.which(PROVENANCED_BINARY)
    if on_path:
        return on_path

    # let the first invocation report the missing binary
    return PROVENANCED_BINARY


class Provenanced:
    """Runs provenanced in testnet mode against one home directory"""

    def __init__(self, binary: str, home):
        self.binary = binary
        self.home = str(home)

    def base_command(self) -> List[str]:
        return [self.binary, "-t", "--home", self.home]

    def run(self, *args: str, input_text: Optional[str] = None):
        cmd = self.base_command() + list(args)
        logger.debug(f"  $ {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                input=input_text,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise ProvisioningError(cmd, -1, str(e))
        if result.returncode != 0:
            raise ProvisioningError(cmd, result.returncode, result.stderr or "")
        return result

    def init(self, chain_id: str, moniker: str = "localnet"):
        self.run("init", f"--chain-id={chain_id}", moniker)

    def add_key(self, name: str):
        self.run("keys", "add", name, "--keyring-backend", KEYRING_BACKEND)

    def recover_key(self, name: str, mnemonic: str, hd_path: str):
        # mnemonic goes through stdin so it never shows in the process list
        self.run(
            "keys", "add", name,
            "--recover",
            "--keyring-backend", KEYRING_BACKEND,
            "--hd-path", hd_path,
            input_text=f"{mnemonic}\n",
        )

    def add_genesis_account(self, name: str, amount: int, denom: str):
        self.run("add-genesis-account", name, f"{amount}{denom}", "--keyring-backend", KEYRING_BACKEND)

    def add_genesis_root_name(self, key: str, name: str, restrict: bool):
        self.run(
            "add-genesis-root-name", key, name,
            "--restrict" if restrict else "--restrict=false",
            "--keyring-backend", KEYRING_BACKEND,
        )

    def add_genesis_marker(self, supply: int, denom: str, manager: str, access: List[str]):
        self.run(
            "add-genesis-marker", f"{supply}{denom}",
            "--manager", manager,
            "--access", ",".join(access),
            "--activate",
            "--keyring-backend", KEYRING_BACKEND,
        )

    def gentx(self, name: str, amount: int, denom: str, chain_id: str):
        self.run("gentx", name, f"{amount}{denom}", "--keyring-backend", KEYRING_BACKEND, f"--chain-id={chain_id}")

    def collect_gentxs(self):
        self.run("collect-gentxs")

    def config_set(self, name: str, value: str):
        self.run("config", "set", name, value)

    def start_command(self) -> List[str]:
        return self.base_command() + ["start"]
