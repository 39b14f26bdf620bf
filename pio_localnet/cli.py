"""
pio-localnet command line

Usage:
    pio-localnet start --accounts 5 --chainId my-chain
    pio-localnet start --force --background false
    pio-localnet stop
    pio-localnet reset
    pio-localnet status
"""

import argparse
import asyncio
import json
import logging
import sys

from . import __version__
from .config import DEFAULT_CONFIG_FILE, load_config_file, resolve_config
from .errors import LocalnetError
from .node_manager import LocalnetManager

logger = logging.getLogger(__name__)

LOG_FILE = "localnet.log"
COMMANDS = ("start", "stop", "reset", "status")


def configure_logging(verbose: bool = False, log_file: str = LOG_FILE):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ],
        force=True,
    )


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ("true", "1", "yes", "y"):
        return True
    if lowered in ("false", "0", "no", "n"):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got '{value}'")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Verbose (debug) logging")
    common.add_argument("--home", help="Node home directory (default: ./.localnet)")

    parser = argparse.ArgumentParser(prog="pio-localnet", description="One-step Provenance blockchain")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    start = subparsers.add_parser("start", parents=[common], help="Start a provenance blockchain node")
    start.add_argument("-c", "--config", help=f"The config file (default: {DEFAULT_CONFIG_FILE})")
    start.add_argument("-f", "--force", action="store_true", help="Force resets the blockchain")
    start.add_argument("-b", "--background", nargs="?", const=True, default=True, type=parse_bool,
                       metavar="true|false", help="Run the blockchain in the background")
    start.add_argument("-m", "--mnemonic", help="BIP39 mnemonic phrase for generating seed")
    start.add_argument("-a", "--accounts", help="Total accounts to generate")
    start.add_argument("-r", "--restrictedRootNames", dest="restricted_root_names",
                       metavar="name1,name2,...", help="Restricted root names to create")
    start.add_argument("-u", "--unrestrictedRootNames", dest="unrestricted_root_names",
                       metavar="name1,name2,...", help="Unrestricted root names to create")
    start.add_argument("-s", "--hashSupply", dest="hash_supply", help="The total supply of nhash tokens")
    start.add_argument("-i", "--chainId", dest="chain_id", help="The provenance chain id")
    start.add_argument("-p", "--rpcPort", dest="rpc_port", help="Port for RPC connections to the node")
    start.add_argument("-g", "--grpcPort", dest="grpc_port", help="Port for gRPC connections to the node")
    start.add_argument("--bindAddress", dest="bind_address", help="Address the node listens on")

    subparsers.add_parser("stop", parents=[common], help="Stops a running provenance blockchain node")
    subparsers.add_parser("reset", parents=[common], help="Resets the provenance blockchain")
    subparsers.add_parser("status", parents=[common], help="Shows whether the node is running")
    return parser


def _with_default_command(argv):
    argv = list(argv)
    if not argv:
        return ["start"]
    if argv[0] in COMMANDS or argv[0] in ("-h", "--help", "--version"):
        return argv
    return ["start"] + argv


async def run_command(manager: LocalnetManager, args) -> int:
    if args.command == "start":
        file_config = load_config_file(args.config or DEFAULT_CONFIG_FILE, required=args.config is not None)
        overrides = {
            "mnemonic": args.mnemonic,
            "accounts": args.accounts,
            "chain_id": args.chain_id,
            "rpc_port": args.rpc_port,
            "grpc_port": args.grpc_port,
            "hash_supply": args.hash_supply,
            "bind_address": args.bind_address,
            "restricted_root_names": args.restricted_root_names,
            "unrestricted_root_names": args.unrestricted_root_names,
        }
        config = resolve_config(file_config, overrides)
        report = await manager.start(config, force=args.force, background=args.background)
        return report.exit_code or 0

    if args.command == "stop":
        await manager.stop()
    elif args.command == "reset":
        await manager.reset()
    elif args.command == "status":
        print(json.dumps(manager.status(), indent=2))
    return 0


def main(argv=None):
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(_with_default_command(sys.argv[1:] if argv is None else argv))

    configure_logging(args.verbose)

    try:
        manager = LocalnetManager(home=args.home)
        exit_code = asyncio.run(run_command(manager, args))
    except KeyboardInterrupt:
        logger.info("\nInterrupted by user")
        sys.exit(1)
    except LocalnetError as e:
        logger.error(f"✗ {e}")
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
