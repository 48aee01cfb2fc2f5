#!/usr/bin/env python3
"""tapbot - chat front end for a blockchain faucet.

Entry point for the tapbot service.
"""

import asyncio
import logging
import os
import signal
import sys
import tempfile
from pathlib import Path

from eth_account import Account

from tapbot.blockchain.client import Web3NodeClient
from tapbot.cli import create_parser, run_cli
from tapbot.config import TapConfig
from tapbot.core.wallet import load_wallet
from tapbot.faucet import Disburser, RateLimitStore, TapService
from tapbot.observability.health import HealthServer, NodeSyncCheck
from tapbot.observability.logging import configure_logging
from tapbot.slack.adapter import SlackAdapter
from tapbot.slack.commands import register_listeners


def generate_wallet(output_path: str) -> None:
    """Generate a new faucet key and save it to a file.

    Parameters
    ----------
    output_path : str
        Path to save the private key file.
    """
    account = Account.create()

    key_path = Path(output_path)
    key_path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in the target directory so the rename stays on one filesystem
    fd, temp_path = tempfile.mkstemp(dir=key_path.parent, prefix=".tapbot-key-")
    fd_closed = False
    try:
        os.fchmod(fd, 0o600)
        os.write(fd, account.key.hex().encode())
        os.close(fd)
        fd_closed = True
        os.rename(temp_path, key_path)
    except Exception:
        if not fd_closed:
            os.close(fd)
        Path(temp_path).unlink(missing_ok=True)
        raise

    print(f"""
Wallet generated successfully!

  Address:     {account.address}
  Private Key: {key_path.absolute()}

Next steps:

  1. Fund this address on your target network

  2. Launch tapbot with this wallet:

     export TAP_WALLET_PRIVATE_KEY_FILE={key_path.absolute()}
     tapbot run

Keep this private key secure. Anyone with access can drain the faucet.
""")


def parse_args():
    """Parse command line arguments."""
    return create_parser().parse_args()


async def run_service() -> None:
    """Run the tap bot until SIGTERM or SIGINT.

    Wires up the health server, wallet, node client, cooldown store,
    disbursement workflow, command router and Slack adapter.
    """
    config = TapConfig()
    configure_logging(level=config.log_level, log_format=config.log_format)

    logger = logging.getLogger(__name__)
    logger.info("tapbot starting")
    logger.info("RPC endpoint: %s", config.rpc_url)
    logger.info(
        "Transfer amount: %d, cooldown: %ds", config.transfer_amount, config.cooldown_seconds
    )

    if not config.slack_bot_token or not config.slack_app_token:
        logger.error("Missing Slack tokens. Set SLACK_BOT_TOKEN and SLACK_APP_TOKEN")
        sys.exit(1)

    try:
        wallet = load_wallet(config)
    except (ValueError, FileNotFoundError) as e:
        logger.error("Cannot load faucet wallet: %s", e)
        sys.exit(1)
    logger.info("Faucet address: %s", wallet.address)

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def on_shutdown_signal(sig_name: str) -> None:
        logger.info("Received signal %s, initiating shutdown", sig_name)
        shutdown_event.set()

    loop.add_signal_handler(signal.SIGTERM, lambda: on_shutdown_signal("SIGTERM"))
    loop.add_signal_handler(signal.SIGINT, lambda: on_shutdown_signal("SIGINT"))

    client = Web3NodeClient(config.rpc_url, config.history_blocks)

    health_server = HealthServer(port=config.metrics_port)
    health_server.add_check(NodeSyncCheck(client))
    await health_server.start()
    logger.info("Health server started on port %d", config.metrics_port)

    disburser = Disburser(
        client=client,
        wallet=wallet,
        rate_limiter=RateLimitStore(),
        amount=config.transfer_amount,
        cooldown=config.cooldown,
        gas_price=config.gas_price,
        gas_limit=config.gas_limit,
    )
    router = TapService(client, wallet, disburser).build_router()

    slack_adapter = SlackAdapter(
        bot_token=config.slack_bot_token,
        app_token=config.slack_app_token,
        channel=config.slack_channel,
    )
    register_listeners(slack_adapter.app, router, config.slack_channel)
    await slack_adapter.start()
    logger.info("tapbot ready")

    await shutdown_event.wait()

    logger.info("tapbot shutting down...")
    await slack_adapter.stop()
    await health_server.stop()
    logger.info("tapbot shutdown complete")


async def main() -> None:
    """Main entry point for tapbot."""
    args = parse_args()

    if args.generate_wallet:
        generate_wallet(args.generate_wallet)
        return

    if args.command and args.command != "run":
        exit_code = run_cli(args)
        if exit_code >= 0:
            sys.exit(exit_code)
        create_parser().print_help()
        sys.exit(0)

    await run_service()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
