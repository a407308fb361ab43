"""
tba-registry: deterministic token-bound account registry.

Entry point:
  serve    run the JSON-RPC server over an in-memory or py-evm ledger
  predict  print the address an account would be deployed at
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from tbaregistry.common.config import LEDGER_BACKENDS, RegistryConfig
from tbaregistry.common.errors import InvalidParameter
from tbaregistry.common.types import AccountCreationParams, format_address
from tbaregistry.registry.registry import AccountRegistry
from tbaregistry.rpc.registry_api import register_registry_api
from tbaregistry.rpc.server import RPCServer
from tbaregistry.storage.ledger import Ledger
from tbaregistry.storage.memory_backend import MemoryLedger


logger = logging.getLogger("tbaregistry")


def create_ledger(config: RegistryConfig) -> Ledger:
    if config.ledger == "evm":
        from tbaregistry.storage.evm_backend import ChainConfig, EVMLedger
        return EVMLedger(ChainConfig(chain_id=config.chain_id, gas_limit=config.gas_limit))
    return MemoryLedger()


def create_app(config: RegistryConfig, ledger: Optional[Ledger] = None) -> RPCServer:
    """Wire ledger, registry and RPC methods together."""
    ledger = ledger or create_ledger(config)
    registry = AccountRegistry.from_config(config, ledger)
    rpc = RPCServer()
    register_registry_api(rpc, registry, chain_id=config.chain_id)
    return rpc


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tbaregistry",
        description="Deterministic token-bound account registry",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON config file",
    )
    parser.add_argument(
        "--registry",
        type=str,
        default=None,
        help="Registry (deployer) address used for address derivation",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the JSON-RPC server")
    serve.add_argument("--ledger", choices=LEDGER_BACKENDS, default=None,
                       help="Ledger backend (default: memory)")
    serve.add_argument("--chain-id", type=int, default=None, help="Ledger chain ID")
    serve.add_argument("--host", default=None, help="RPC listen host (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=None, help="RPC listen port (default: 8545)")

    predict = subparsers.add_parser("predict", help="Print an account address")
    predict.add_argument("--implementation", required=True, help="Implementation address")
    predict.add_argument("--chain-id", required=True, help="Chain ID the token lives on")
    predict.add_argument("--token-contract", required=True, help="Token contract address")
    predict.add_argument("--token-id", required=True, help="Token ID")
    predict.add_argument("--salt", default="0", help="Salt (default: 0)")
    return parser


def load_config(args: argparse.Namespace) -> RegistryConfig:
    config = RegistryConfig.load(args.config) if args.config else RegistryConfig()
    overrides = {"registry_address": args.registry}
    if args.command == "serve":
        overrides.update(
            ledger=args.ledger,
            chain_id=args.chain_id,
            rpc_host=args.host,
            rpc_port=args.port,
        )
    return config.override(**overrides)


def run_predict(args: argparse.Namespace, config: RegistryConfig) -> int:
    params = AccountCreationParams(
        implementation=args.implementation,
        chain_id=args.chain_id,
        token_contract=args.token_contract,
        token_id=args.token_id,
        salt=args.salt,
    )
    registry = AccountRegistry.from_config(config, MemoryLedger())
    try:
        location = registry.predict_address(params)
    except InvalidParameter as e:
        logger.error("%s", e)
        return 1
    print(format_address(location))
    return 0


def run_serve(config: RegistryConfig) -> int:
    import uvicorn

    rpc = create_app(config)
    logger.info("Starting tba-registry")
    logger.info("  Registry: %s", format_address(config.registry_address))
    logger.info("  Ledger: %s (chain ID %d)", config.ledger, config.chain_id)
    logger.info("  RPC: %s:%d", config.rpc_host, config.rpc_port)
    uvicorn.run(rpc.app, host=config.rpc_host, port=config.rpc_port, log_level="warning")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = load_config(args)
    except (OSError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    if args.command == "predict":
        return run_predict(args, config)
    return run_serve(config)


if __name__ == "__main__":
    sys.exit(main())
