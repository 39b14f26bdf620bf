"""
Local Provenance node manager

Initializes a single-validator provenanced network in a home directory,
then starts, stops and resets the node. Genesis is built once per home
directory; later starts reuse it as long as the configuration is unchanged.
"""

import logging
import shutil
from pathlib import Path
from typing import Dict, List, Optional

from . import __version__
from .config import (
    DEFAULT_API_PORT,
    DEFAULT_HOME_DIRECTORY,
    DEFAULT_P2P_PORT,
    HASH_DENOM,
    HASH_MARKER_ACCESS,
    LocalnetConfig,
)
from .errors import (
    AlreadyRunning,
    ConfigMismatch,
    NotRunning,
    ResetWhileRunning,
    StartFailed,
)
from .genesis import GenesisPlan, plan_genesis
from .keys import KeyIdentity, base_hd_path, derive_accounts, generate_mnemonic, hd_path
from .lockfile import LOCK_FILE_NAME, LockFile
from .process import DEFAULT_EXIT_TIMEOUT, DEFAULT_READY_TIMEOUT, ProcessSupervisor
from .provenanced import PROVENANCED_BINARY, Provenanced, resolve_binary
from .rpc_client import NodeRpcClient

logger = logging.getLogger(__name__)

VALIDATOR_KEY = "validator"
NODE_LOG_FILE = "node.log"


class StartReport:
    """What a start produced, for display and for callers of the API"""

    def __init__(self, config: LocalnetConfig, plan: GenesisPlan, accounts: List[KeyIdentity],
                 genesis_built: bool, pid: Optional[int] = None, exit_code: Optional[int] = None):
        self.config = config
        self.plan = plan
        self.accounts = accounts
        self.genesis_built = genesis_built
        self.pid = pid
        self.exit_code = exit_code

    @property
    def mnemonic(self) -> str:
        return self.config.mnemonic


class LocalnetManager:
    """Main manager class for the local node"""

    def __init__(self, home=None, binary: Optional[str] = None,
                 provenanced: Optional[Provenanced] = None,
                 supervisor: Optional[ProcessSupervisor] = None,
                 ready_timeout: float = DEFAULT_READY_TIMEOUT,
                 exit_timeout: float = DEFAULT_EXIT_TIMEOUT):
        self.home = Path(home) if home is not None else Path.cwd() / DEFAULT_HOME_DIRECTORY
        self.home = self.home.absolute()
        self.home.mkdir(parents=True, exist_ok=True)

        self.provenanced = provenanced or Provenanced(binary or resolve_binary(), self.home)
        self.supervisor = supervisor or ProcessSupervisor(PROVENANCED_BINARY)
        self.ready_timeout = ready_timeout
        self.exit_timeout = exit_timeout

        self.lock_file = LockFile(self.home / LOCK_FILE_NAME)

    async def start(self, config: LocalnetConfig, force: bool = False, background: bool = True) -> StartReport:
        """Initialize genesis if needed, then start the node"""
        config = LocalnetConfig.from_dict(config.to_dict())

        # generate a pseudo-random mnemonic if one is not provided
        mnemonic_generated = False
        if config.mnemonic is None:
            config.mnemonic = generate_mnemonic()
            mnemonic_generated = True

        # ensure that it isn't already running
        pid = self.supervisor.find_managed_pid(self.home)
        if pid is not None:
            if force:
                logger.info(f"Stopping running node (pid {pid}) before forced start...")
                await self.stop()
            else:
                self.lock_file.pid = pid
                raise AlreadyRunning(f"The provenance node is already running (pid {pid})")

        plan = plan_genesis(config.total_supply, config.accounts)

        if self.lock_file.initialized and mnemonic_generated:
            config.mnemonic = self.lock_file.config.get("mnemonic", config.mnemonic)

        logger.info(f"pio-localnet {__version__}")

        genesis_built = False
        if not self.lock_file.initialized or force:
            if force and self.home.exists():
                await self.reset()
                self.home.mkdir(parents=True, exist_ok=True)

            self._build_genesis(config, plan)
            self.lock_file.mark_initialized(config.to_dict())
            genesis_built = True
        elif config.to_dict() != self.lock_file.config:
            raise ConfigMismatch(
                "Configuration does not match the already initialized blockchain data.\n"
                "Reset the blockchain data with 'reset' first."
            )
        else:
            logger.info(f"Using existing genesis in {self.home}")

        accounts = derive_accounts(config.mnemonic, config.accounts)
        self._log_accounts(config, plan, accounts)

        report = StartReport(config, plan, accounts, genesis_built)
        command = self.provenanced.start_command()
        if not background:
            logger.info("Starting node in the foreground...")
            report.exit_code = await self.supervisor.start(command, background=False)
            logger.info(f"Node exited with status {report.exit_code}")
            return report

        logger.info("Starting node in the background...")
        await self.supervisor.start(command, background=True, log_file=self.home / NODE_LOG_FILE)

        # wait for the process to settle
        ready = await self.supervisor.await_ready(
            config.ports.grpc, self.ready_timeout, host=_connect_host(config.bind_address)
        )
        if not ready:
            raise StartFailed(f"Failed to start the provenance node, see {self.home / NODE_LOG_FILE}")

        pid = self.supervisor.find_managed_pid(self.home)
        if pid is None:
            raise StartFailed("Failed to start the provenance node: process not found after start")

        self.lock_file.pid = pid
        report.pid = pid
        logger.info(f"✓ Node running (pid {pid})")
        return report

    async def stop(self):
        """Stop the running node and wait for it to exit"""
        pid = self.supervisor.find_managed_pid(self.home)
        if pid is None:
            if self.lock_file.pid is not None:
                self.lock_file.pid = None
            raise NotRunning("The provenance node is not currently running")

        logger.info(f"Stopping node (pid {pid})...")
        self.supervisor.stop(pid)
        await self.supervisor.await_exit(pid, self.exit_timeout)

        self.lock_file.pid = None
        logger.info("✓ Node stopped")

    async def reset(self):
        """Delete the blockchain data; refuses while the node is running"""
        pid = self.supervisor.find_managed_pid(self.home)
        if pid is not None:
            raise ResetWhileRunning(
                f"Cannot reset the blockchain data while the provenance node is running (pid {pid})"
            )

        if self.home.exists():
            shutil.rmtree(self.home)
        self.lock_file.discard()
        logger.info(f"✓ Removed {self.home}")

    async def stop_and_reset(self):
        await self.stop()
        await self.reset()

    def status(self) -> Dict:
        """Running state of the node plus its chain height when reachable"""
        pid = self.supervisor.find_managed_pid(self.home)
        stored = self.lock_file.config or {}
        status = {
            "home": str(self.home),
            "initialized": self.lock_file.initialized,
            "running": pid is not None,
            "pid": pid,
            "chain_id": stored.get("chainId"),
            "latest_block_height": None,
            "network": None,
        }
        if pid is not None and stored:
            rpc_port = stored.get("ports", {}).get("rpc")
            host = _connect_host(stored.get("bindAddress", "localhost"))
            client = NodeRpcClient(f"http://{host}:{rpc_port}")
            status["latest_block_height"] = client.latest_block_height()
            status["network"] = client.network()
        return status

    def _build_genesis(self, config: LocalnetConfig, plan: GenesisPlan):
        """Issue the provisioning commands in order; a failure leaves the home dir for reset()"""
        node = self.provenanced
        logger.info(f"Initializing chain '{config.chain_id}' in {self.home}...")

        node.init(config.chain_id)

        # add the validator
        node.add_key(VALIDATOR_KEY)
        node.add_genesis_account(VALIDATOR_KEY, plan.validator_stake, HASH_DENOM)

        # generate the accounts
        for index in range(config.accounts):
            name = f"account{index}"
            node.recover_key(name, config.mnemonic, hd_path(0, index))
            node.add_genesis_account(name, plan.per_account_balance, HASH_DENOM)
        logger.info(f"  ✓ Funded validator and {config.accounts} accounts")

        for root_name in config.root_names:
            node.add_genesis_root_name(VALIDATOR_KEY, root_name.name, root_name.restrict)

        # create the hash marker, then markers from config
        node.add_genesis_marker(
            plan.total_supply, HASH_DENOM, VALIDATOR_KEY, [access.value for access in HASH_MARKER_ACCESS]
        )
        for marker in config.markers:
            node.add_genesis_marker(
                marker.supply, marker.denom, marker.manager, [access.value for access in marker.access]
            )

        # validator self-delegation, then collect the genesis transactions
        node.gentx(VALIDATOR_KEY, plan.validator_delegation, HASH_DENOM, config.chain_id)
        node.collect_gentxs()

        host = config.bind_address
        node.config_set("rpc.laddr", f"tcp://{host}:{config.ports.rpc}")
        node.config_set("p2p.laddr", f"tcp://{host}:{DEFAULT_P2P_PORT}")
        node.config_set("grpc.address", f"{host}:{config.ports.grpc}")
        node.config_set("grpc-web.enable", "false")
        node.config_set("api.enable", "true")
        node.config_set("api.address", f"tcp://{host}:{DEFAULT_API_PORT}")
        node.config_set("api.swagger", "true")

        logger.info("  ✓ Genesis complete")

    def _log_accounts(self, config: LocalnetConfig, plan: GenesisPlan, accounts: List[KeyIdentity]):
        logger.info("Available Accounts")
        logger.info("==================")
        width = config.accounts // 10 + 4
        for identity in accounts:
            index = f"({identity.index})".ljust(width)
            logger.info(f"{index}{identity.address} ({plan.per_account_balance} {HASH_DENOM})")
        logger.info("")
        logger.info("HD Wallet")
        logger.info("==================")
        logger.info(f"Mnemonic:      {config.mnemonic}")
        logger.info(f"Base HD Path:  {base_hd_path()}")
        logger.info("")


def _connect_host(bind_address: str) -> str:
    # a wildcard bind is reachable over loopback
    if bind_address in ("0.0.0.0", "::", ""):
        return "127.0.0.1"
    return bind_address
