"""CLI subcommands for DRIP operations.

Operator commands that talk to the configured chains directly, without the
HTTP service: inspect the faucet wallets, list tokens, check balances and
hand out a single transfer. ``run`` is left to the service entry point.
"""

import argparse
import asyncio
import json
import sys
from decimal import Decimal

from drip.blockchain import ChainClient, NetworkInfo, build_clients, build_networks
from drip.config import DripConfig
from drip.faucet import (
    ContractTransfer,
    CooldownStore,
    Dispatcher,
    FaucetService,
    NativeTransfer,
    TokenRegistry,
    build_registry,
    validate_address,
)


def create_parser() -> argparse.ArgumentParser:
    """Build the ``drip`` parser and its wallet, faucet and run groups."""
    parser = argparse.ArgumentParser(
        prog="drip",
        description="DRIP - testnet token faucet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global flags
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Describe transfers instead of sending them",
    )
    parser.add_argument(
        "--generate-wallet",
        metavar="FILE",
        help="Write a fresh faucet key to FILE and exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command groups")

    # Wallet subcommand
    wallet_parser = subparsers.add_parser("wallet", help="Inspect faucet wallets")
    wallet_sub = wallet_parser.add_subparsers(dest="wallet_command")

    wallet_sub.add_parser("address", help="Show faucet wallet addresses")
    wallet_sub.add_parser("balance", help="Show native balances per chain")

    # Faucet subcommand
    faucet_parser = subparsers.add_parser("faucet", help="Inspect or use the faucet")
    faucet_sub = faucet_parser.add_subparsers(dest="faucet_command")

    faucet_sub.add_parser("status", help="Show faucet balances per token")
    faucet_sub.add_parser("tokens", help="List supported tokens")

    send_parser = faucet_sub.add_parser("send", help="Send a token to an address (no cooldown)")
    send_parser.add_argument("token", type=str, help="Token symbol")
    send_parser.add_argument("address", type=str, help="Recipient address")

    # Handled by drip.main
    subparsers.add_parser("run", help="Start the DRIP HTTP service")

    return parser


class CLIContext:
    """Config, flags and lazily built chain objects for one CLI invocation."""

    def __init__(self, config: DripConfig, dry_run: bool = False, json_output: bool = False):
        self.config = config
        self.dry_run = dry_run
        self.json_output = json_output
        self._clients: dict[str, ChainClient] | None = None
        self._networks: dict[str, NetworkInfo] | None = None
        self._registry: TokenRegistry | None = None
        self._dispatcher: Dispatcher | None = None

    @property
    def clients(self) -> dict[str, ChainClient]:
        """Chain clients keyed by chain name (lazy loaded)."""
        if self._clients is None:
            self._clients = build_clients(self.config)
        return self._clients

    @property
    def networks(self) -> dict[str, NetworkInfo]:
        """Network descriptions keyed by chain name (lazy loaded)."""
        if self._networks is None:
            self._networks = build_networks(self.config)
        return self._networks

    @property
    def registry(self) -> TokenRegistry:
        """Token registry (lazy loaded)."""
        if self._registry is None:
            self._registry = build_registry(self.config, self.clients)
        return self._registry

    @property
    def dispatcher(self) -> Dispatcher:
        """Dispatcher (lazy loaded)."""
        if self._dispatcher is None:
            self._dispatcher = Dispatcher(self.registry, self.clients)
        return self._dispatcher

    def output(self, data: dict) -> None:
        """Print ``data`` as JSON or as indented key/value lines."""
        if self.json_output:

            def decimal_default(obj):
                if isinstance(obj, Decimal):
                    return str(obj)
                raise TypeError(f"Object of type {type(obj)} is not JSON serializable")

            print(json.dumps(data, default=decimal_default, indent=2))
        else:
            self._print_formatted(data)

    def _print_formatted(self, data: dict, indent: int = 0) -> None:
        """Print nested dicts as indented ``key: value`` lines."""
        prefix = "  " * indent
        for key, value in data.items():
            if isinstance(value, dict):
                print(f"{prefix}{key}:")
                self._print_formatted(value, indent + 1)
            else:
                print(f"{prefix}{key}: {value}")


# Wallet commands


def cmd_wallet_address(ctx: CLIContext) -> int:
    """Show faucet wallet addresses per chain."""
    try:
        ctx.output({name: client.wallet_address for name, client in ctx.clients.items()})
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


def cmd_wallet_balance(ctx: CLIContext) -> int:
    """Show native balances per chain."""
    try:
        data: dict[str, dict] = {}
        for name, client in ctx.clients.items():
            if not client.connected:
                ctx.output({"error": f"Not connected to {name} RPC endpoint"})
                return 1
            data[name] = {
                "address": client.wallet_address,
                "balance": client.get_native_balance(client.wallet_address),
                "rpc": ctx.networks[name].rpc_endpoint,
                "chain_id": client.chain_id,
            }
        ctx.output(data)
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


# Faucet commands


def cmd_faucet_status(ctx: CLIContext) -> int:
    """Show faucet balances per supported token."""
    try:
        faucet = FaucetService(CooldownStore(), ctx.dispatcher)
        status = asyncio.run(faucet.get_status())
        ctx.output(
            {
                "healthy": status.healthy,
                "message": status.message,
                "balances": status.balances,
            }
        )
        return 0 if status.healthy else 1
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


def cmd_faucet_tokens(ctx: CLIContext) -> int:
    """List supported tokens and how they are paid out."""
    try:
        data: dict[str, dict] = {}
        for token in ctx.registry:
            entry: dict = {"amount": token.amount_text, "chain": token.chain}
            match token.transfer:
                case NativeTransfer():
                    entry["kind"] = "native"
                case ContractTransfer(contract=contract):
                    entry["kind"] = "contract"
                    entry["contract"] = contract.address
            data[token.symbol] = entry
        ctx.output(data)
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


def cmd_faucet_send(ctx: CLIContext, token: str, address: str) -> int:
    """Send a token to an address, bypassing the cooldown."""
    try:
        symbol = token.upper()
        config = ctx.registry.lookup(symbol)
        if config is None:
            ctx.output({"error": f"Unsupported token {symbol}"})
            return 1
        if not validate_address(address):
            ctx.output({"error": f"Invalid address format: {address}"})
            return 1

        if ctx.dry_run:
            ctx.output(
                {
                    "dry_run": True,
                    "action": "send",
                    "token": symbol,
                    "to": address,
                    "amount": config.amount_text,
                    "message": f"Would send {config.amount_text} {symbol} to {address}",
                }
            )
            return 0

        result = asyncio.run(ctx.dispatcher.dispense(symbol, address))
        data = {
            "success": result.success,
            "token": symbol,
            "message": result.message,
        }
        if result.tx_hash:
            data["tx_hash"] = result.tx_hash
            tx_url = ctx.networks[config.chain].get_tx_url(result.tx_hash)
            if tx_url:
                data["tx_url"] = tx_url
        ctx.output(data)
        return 0 if result.success else 1
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


def run_cli(args: argparse.Namespace) -> int:
    """Run the operator command selected by ``args``.

    Returns
    -------
    int
        0 on success, 1 on failure or a missing subcommand, and -1 when no
        operator command was selected so the caller should start the service.
    """
    try:
        config = DripConfig()
    except Exception as e:
        if args.json:
            print(json.dumps({"error": f"Configuration error: {e}"}))
        else:
            print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    ctx = CLIContext(config, dry_run=args.dry_run, json_output=args.json)

    commands = {
        ("wallet", "address"): lambda: cmd_wallet_address(ctx),
        ("wallet", "balance"): lambda: cmd_wallet_balance(ctx),
        ("faucet", "status"): lambda: cmd_faucet_status(ctx),
        ("faucet", "tokens"): lambda: cmd_faucet_tokens(ctx),
        ("faucet", "send"): lambda: cmd_faucet_send(ctx, args.token, args.address),
    }
    usage = {
        "wallet": "Usage: drip wallet [address|balance]",
        "faucet": "Usage: drip faucet [status|tokens|send]",
    }

    if args.command not in usage:
        return -1

    subcommand = getattr(args, f"{args.command}_command", None)
    command = commands.get((args.command, subcommand))
    if command is None:
        print(usage[args.command], file=sys.stderr)
        return 1
    return command()
