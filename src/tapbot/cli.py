"""CLI subcommands for operating the tap bot.

Provides command-line access to:
- Wallet operations (address, balance)
- Faucet status
- One-off read-only chat commands run through the command router (exec)
"""

import argparse
import asyncio
import json
import sys

from tapbot.blockchain.client import NodeClient, Web3NodeClient
from tapbot.config import TapConfig
from tapbot.core.wallet import EnvironmentWallet, load_wallet
from tapbot.faucet import Disburser, RateLimitStore, TapService


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="tapbot",
        description="tapbot - chat front end for a blockchain faucet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )
    parser.add_argument(
        "--generate-wallet",
        metavar="FILE",
        help="Generate a new wallet and save private key to FILE, then exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    wallet_parser = subparsers.add_parser("wallet", help="Wallet operations")
    wallet_sub = wallet_parser.add_subparsers(dest="wallet_command")
    wallet_sub.add_parser("address", help="Show faucet address")
    wallet_sub.add_parser("balance", help="Show faucet balances and nonce")

    faucet_parser = subparsers.add_parser("faucet", help="Faucet operations")
    faucet_sub = faucet_parser.add_subparsers(dest="faucet_command")
    faucet_sub.add_parser("status", help="Show node and faucet account status")

    exec_parser = subparsers.add_parser(
        "exec",
        help="Run one read-only chat command, e.g. '$help' (funds are only sent from chat)",
    )
    exec_parser.add_argument("line", nargs="+", help="Chat message text")

    subparsers.add_parser("run", help="Start the tap bot service")

    return parser


class CLIContext:
    """Shared context for CLI commands."""

    def __init__(self, config: TapConfig, json_output: bool = False):
        self.config = config
        self.json_output = json_output
        self._wallet: EnvironmentWallet | None = None
        self._client: NodeClient | None = None

    @property
    def wallet(self) -> EnvironmentWallet:
        """Get wallet (lazy loaded)."""
        if self._wallet is None:
            self._wallet = load_wallet(self.config)
        return self._wallet

    @property
    def client(self) -> NodeClient:
        """Get node client (lazy loaded)."""
        if self._client is None:
            self._client = Web3NodeClient(self.config.rpc_url, self.config.history_blocks)
        return self._client

    def service(self) -> TapService:
        """Build a tap service with a fresh cooldown store."""
        disburser = Disburser(
            client=self.client,
            wallet=self.wallet,
            rate_limiter=RateLimitStore(),
            amount=self.config.transfer_amount,
            cooldown=self.config.cooldown,
            gas_price=self.config.gas_price,
            gas_limit=self.config.gas_limit,
        )
        return TapService(self.client, self.wallet, disburser)

    def output(self, data: dict) -> None:
        """Output data in the appropriate format."""
        if self.json_output:
            print(json.dumps(data, default=str, indent=2))
        else:
            for key, value in data.items():
                print(f"{key}: {value}")


def cmd_wallet_address(ctx: CLIContext) -> int:
    """Show faucet address."""
    try:
        ctx.output({"address": str(ctx.wallet.address)})
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


def cmd_wallet_balance(ctx: CLIContext) -> int:
    """Show faucet balances."""
    try:
        state = asyncio.run(ctx.client.account_state(ctx.wallet.address))
        ctx.output(
            {
                "address": str(ctx.wallet.address),
                "current_balance": state.current_balance,
                "projected_balance": state.projected_balance,
                "nonce": state.projected_counter,
                "rpc": ctx.config.rpc_url,
            }
        )
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


def cmd_faucet_status(ctx: CLIContext) -> int:
    """Show node health and faucet balance."""

    async def _read():
        return (
            await ctx.client.node_status(),
            await ctx.client.account_state(ctx.wallet.address),
        )

    try:
        status, state = asyncio.run(_read())
        ctx.output(
            {
                "synced": status.is_synced,
                "peers": status.connected_peers,
                "layer": status.top_layer,
                "balance": state.projected_balance,
                "transfer_amount": ctx.config.transfer_amount,
                "cooldown_seconds": ctx.config.cooldown_seconds,
            }
        )
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


def cmd_exec(ctx: CLIContext, line: str) -> int:
    """Run one read-only chat command through the command router.

    Bare addresses are refused: a CLI run has no cooldown history, so a
    transfer from here would bypass the per-address cooldown.
    """
    try:
        router = ctx.service().build_router()
        resolved = router.resolve(line.split(" "))
        if resolved is not None and resolved[0] == "transfer":
            ctx.output({"error": "Transfers are only served from the tap channel"})
            return 1
        result = asyncio.run(router.dispatch(line))
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1

    if result is None:
        ctx.output({"error": f"Not a tap command: {line}"})
        return 1
    if result.ok:
        ctx.output({"reply": result.text})
        return 0
    ctx.output({"error": result.text, "kind": result.error.value})
    return 1


def run_cli(args: argparse.Namespace) -> int:
    """Execute CLI command based on parsed arguments.

    Returns
    -------
    int
        Exit code: 0 for success, positive for error, -1 signals caller
        to show help (no CLI command specified).
    """
    try:
        config = TapConfig()
    except Exception as e:
        if args.json:
            print(json.dumps({"error": f"Configuration error: {e}"}))
        else:
            print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    ctx = CLIContext(config, json_output=args.json)

    if args.command == "wallet":
        if args.wallet_command == "address":
            return cmd_wallet_address(ctx)
        elif args.wallet_command == "balance":
            return cmd_wallet_balance(ctx)
        print("Usage: tapbot wallet [address|balance]", file=sys.stderr)
        return 1

    elif args.command == "faucet":
        if args.faucet_command == "status":
            return cmd_faucet_status(ctx)
        print("Usage: tapbot faucet [status]", file=sys.stderr)
        return 1

    elif args.command == "exec":
        return cmd_exec(ctx, " ".join(args.line))

    return -1
