"""
Command-line interface for stellar-mc.

Each invocation runs exactly one command. Errors from any stage reach
main(), which prints them and exits with a non-zero status.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional, Sequence

import structlog

from stellar_mc import __version__
from stellar_mc.config import McSettings, NetworkContext, NetworkType, load_settings
from stellar_mc.core.mutators import Mutator
from stellar_mc.core.parser import (
    OPTIONS_SCHEMA,
    PAYMENT_SCHEMA,
    TRUSTLINE_SCHEMA,
    parse_document,
    parse_transaction_request,
)
from stellar_mc.exceptions import ConfigError, StellarMcError, TransactionRejectedError
from stellar_mc.keys import generate_keys
from stellar_mc.node.horizon import HorizonAdapter
from stellar_mc.node.interface import HorizonInterface
from stellar_mc.tx.builder import TransactionAssembler
from stellar_mc.tx.signer import TransactionSigner
from stellar_mc.tx.submitter import Accepted, Submitter

# Commands that build a transaction and therefore accept --tx-options
BUILDING_COMMANDS = ("change-trust", "send-payment", "new-tx")


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Logs go to stderr so stdout only carries command output
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="stellar-mc",
        description="Build, sign and submit Stellar transactions described as JSON documents",
        epilog='The network is selected by STELLAR_NETWORK ("public" or "test", default "test").',
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--tx-options",
        metavar="DOC",
        help='add transaction options to a transaction-building command. '
             'example: --tx-options \'{"home-domain": "stellar.org", "master-weight": 1}\'',
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: STELLAR_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    fund_parser = subparsers.add_parser("fund", help="Fund a test network account")
    fund_parser.add_argument("address", help="Address to fund")

    keys_parser = subparsers.add_parser(
        "gen-keys",
        help='Create a key pair in two files, "PREFIX" (seed) and "PREFIX.pub" (address)',
    )
    keys_parser.add_argument("prefix", help="Path of the seed file")

    submit_parser = subparsers.add_parser("submit-tx", help="Submit a base64 encoded transaction")
    submit_parser.add_argument("envelope", help="Signed transaction envelope (base64 XDR)")

    trust_parser = subparsers.add_parser(
        "change-trust",
        help="Create, update or delete a trustline (a limit of \"0\" removes it)",
    )
    trust_parser.add_argument(
        "document",
        help='example: \'{"source-account": "seed", "code": "XYZ", '
             '"issuer-address": "address", "limit": "42.0"}\'',
    )

    payment_parser = subparsers.add_parser("send-payment", help="Send a payment")
    payment_parser.add_argument(
        "document",
        help='example: \'{"from": "seed", "to": "address", "token": "BTC", '
             '"amount": "42.0", "issuer": "address"}\'',
    )

    details_parser = subparsers.add_parser("account-details", help="Print an account record as JSON")
    details_parser.add_argument("address", help="Account address")

    tx_parser = subparsers.add_parser(
        "new-tx",
        help="Build and submit a transaction; without signers the source seed signs",
    )
    tx_parser.add_argument(
        "document",
        help='example: \'{"source-account": "address or seed", '
             '"operations": {"trust": {"code": "XYZ", "issuer-address": "address"}}, '
             '"signers": ["seed1", "seed2"]}\'',
    )

    return parser


async def build_and_submit(
    node: HorizonInterface,
    network: NetworkContext,
    mutators: Sequence[Mutator],
    signers: Sequence[str] = (),
    base_fee: int = 100,
) -> Accepted:
    """
    Run the whole pipeline for one transaction.

    Raises:
        StellarMcError: From whichever stage fails
    """
    assembler = TransactionAssembler(node, base_fee=base_fee)
    draft = await assembler.build(None, network, mutators)

    envelope = TransactionSigner().sign(draft, signers)

    result = await Submitter(node).submit(envelope)
    return result.raise_for_status()


def _print_accepted(result: Accepted) -> None:
    if result.tx_hash:
        print(f"transaction {result.tx_hash} included in ledger {result.ledger_sequence}")
    else:
        print(f"transaction included in ledger {result.ledger_sequence}")


async def run_command(args: argparse.Namespace, settings: McSettings) -> None:
    """Run the selected command."""
    if args.command == "gen-keys":
        keys = generate_keys(args.prefix)
        print(f"keys are created and stored in: {keys.public_path} and {keys.seed_path}")
        return

    options: List[Mutator] = []
    if args.tx_options:
        options = parse_document(args.tx_options, OPTIONS_SCHEMA)

    network = settings.network_context()

    async with HorizonAdapter(network) as node:
        if args.command == "fund":
            if settings.network != NetworkType.TEST:
                raise ConfigError("accounts can only be funded on the test network")
            await node.fund_account(args.address)
            print(f"funded {args.address}")

        elif args.command == "account-details":
            print(json.dumps(await node.details(args.address), indent=2))

        elif args.command == "submit-tx":
            result = await Submitter(node).submit_encoded(args.envelope)
            _print_accepted(result.raise_for_status())

        elif args.command == "send-payment":
            mutators = parse_document(args.document, PAYMENT_SCHEMA) + options
            _print_accepted(await build_and_submit(node, network, mutators, base_fee=settings.base_fee))

        elif args.command == "change-trust":
            mutators = parse_document(args.document, TRUSTLINE_SCHEMA) + options
            _print_accepted(await build_and_submit(node, network, mutators, base_fee=settings.base_fee))

        elif args.command == "new-tx":
            request = parse_transaction_request(args.document)
            mutators = list(request.mutators) + options
            _print_accepted(await build_and_submit(
                node,
                network,
                mutators,
                signers=request.signers,
                base_fee=settings.base_fee,
            ))


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.tx_options and args.command not in BUILDING_COMMANDS:
        parser.error(
            '"--tx-options" can\'t be used by itself, it is an additional flag that should be '
            'used with commands that build transactions: ' + ", ".join(BUILDING_COMMANDS)
        )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(args.log_level or settings.log_level, args.log_json or settings.log_json)

    try:
        asyncio.run(run_command(args, settings))
    except TransactionRejectedError as e:
        print("error: transaction rejected, result codes:", file=sys.stderr)
        for code in e.result_codes:
            print(f"  {code}", file=sys.stderr)
        sys.exit(1)
    except StellarMcError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
