#!/usr/bin/env python3
"""DRIP - testnet token faucet.

Entry point for the DRIP service.
"""

import asyncio
import logging
import signal
import sys
from urllib.parse import urlsplit

from pydantic import ValidationError

from drip.blockchain import build_clients
from drip.cli import create_parser, run_cli
from drip.config import DripConfig
from drip.core.wallet import generate_key_file
from drip.faucet import CooldownStore, Dispatcher, FaucetService, build_registry
from drip.observability.health import ChainHealthCheck
from drip.observability.logging import configure_logging
from drip.web import FaucetServer


def generate_wallet(output_path: str) -> None:
    """Generate a new wallet and save the private key to a file.

    Parameters
    ----------
    output_path : str
        Path to save the private key file.
    """
    address = generate_key_file(output_path)

    print(f"""
Wallet generated successfully!

  Address:     {address}
  Private Key: {output_path}

Next steps:

  1. Fund this address with native coins and the issued token on your testnet

  2. Launch DRIP with this wallet:

     export DRIP_RPC_ENDPOINT=http://localhost:8545
     export DRIP_WALLET_PRIVATE_KEY_FILE={output_path}
     drip run

IMPORTANT: Keep this private key secure. Anyone with access can control the wallet.
""")


def parse_args(argv: list[str] | None = None):
    """Parse command line arguments."""
    return create_parser().parse_args(argv)


def load_config() -> DripConfig:
    """Load and validate configuration, exiting with status 1 when invalid."""
    try:
        return DripConfig()
    except ValidationError as e:
        configure_logging()
        errors = [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]
        logging.getLogger(__name__).error("Invalid configuration", extra={"errors": errors})
        sys.exit(1)


def endpoint_origin(url: str) -> str:
    """Return the scheme and host of an RPC URL, dropping credentials, path and query."""
    parts = urlsplit(url)
    host = parts.netloc.rpartition("@")[2]
    if not parts.scheme or not host:
        return "<unparsed>"
    return f"{parts.scheme}://{host}"


async def run_service(config: DripConfig) -> None:
    """Run the DRIP service (long-running mode).

    Wires up and starts all service components:
    - Chain clients (primary, optional secondary)
    - Token registry and dispatcher
    - Cooldown store with its periodic sweep
    - HTTP server with readiness checks per chain
    """
    logger = logging.getLogger(__name__)
    logger.info("DRIP starting")
    logger.info("RPC endpoint: %s", endpoint_origin(config.rpc_endpoint))
    if config.has_secondary_chain:
        logger.info("Secondary RPC endpoint: %s", endpoint_origin(config.secondary_rpc_endpoint))

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def on_shutdown_signal(sig_name: str) -> None:
        logger.info("Received signal %s, initiating shutdown", sig_name)
        shutdown_event.set()

    loop.add_signal_handler(signal.SIGTERM, lambda: on_shutdown_signal("SIGTERM"))
    loop.add_signal_handler(signal.SIGINT, lambda: on_shutdown_signal("SIGINT"))

    clients = build_clients(config)
    for name, client in clients.items():
        logger.info("Wallet loaded for %s chain: %s", name, client.wallet_address)

    registry = build_registry(config, clients)
    dispatcher = Dispatcher(registry, clients)
    cooldowns = CooldownStore(sweep_interval_seconds=config.sweep_interval_hours * 3600)
    faucet = FaucetService(cooldowns, dispatcher)
    await faucet.start()

    server = FaucetServer(
        faucet,
        checks=[ChainHealthCheck(client) for client in clients.values()],
        host=config.host,
        port=config.port,
        debug=config.debug,
    )
    await server.start()
    logger.info("DRIP service ready", extra={"tokens": registry.symbols})

    await shutdown_event.wait()

    logger.info("DRIP shutting down...")
    await server.stop()
    await faucet.stop()
    logger.info("DRIP shutdown complete")


def main(argv: list[str] | None = None) -> None:
    """Main entry point for DRIP."""
    args = parse_args(argv)

    if args.generate_wallet:
        generate_wallet(args.generate_wallet)
        return

    if args.command and args.command != "run":
        exit_code = run_cli(args)
        if exit_code >= 0:
            sys.exit(exit_code)
        create_parser().print_help()
        sys.exit(0)

    config = load_config()
    configure_logging(level=config.log_level, log_format=config.log_format.value)
    asyncio.run(run_service(config))


if __name__ == "__main__":
    main()
