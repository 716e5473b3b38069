"""
Gauss Wallet - Self-custodial wallet

Command-line front end. Keys are generated, stored and used for signing
locally; only signed transactions leave the machine.

Entry point for the application.
"""

import argparse
import asyncio
import getpass
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from config import Settings, load_settings
from errors import WalletError
from networks import format_amount
from services import LedgerClient, LedgerError, WalletService
from services.logging import configure_logging
from utils import get_wallet_dir
from wallet import EncryptedFileKeystore, JsonFileStore, WalletManager

logger = logging.getLogger(__name__)

KEYSTORE_FILENAME = "keystore.json"
METADATA_FILENAME = "wallet.json"


def _keystore_passphrase() -> str:
    """Device passphrase protecting the local keystore file."""
    value = os.environ.get("GAUSS_KEYSTORE_PASSPHRASE")
    if value:
        return value
    entered = getpass.getpass("Keystore passphrase: ")
    if not entered:
        raise WalletError("Keystore passphrase must not be empty")
    return entered


def build_service(settings: Settings, wallet_dir: Optional[Path] = None) -> WalletService:
    """Wire stores, manager and ledger client for one CLI invocation."""
    wallet_dir = wallet_dir or get_wallet_dir()
    keystore = EncryptedFileKeystore(wallet_dir / KEYSTORE_FILENAME, _keystore_passphrase())
    metadata = JsonFileStore(wallet_dir / METADATA_FILENAME)
    manager = WalletManager(keystore, metadata, settings)
    return WalletService(manager, LedgerClient.from_settings(settings), settings)


# ============================================
# Commands
# ============================================

async def cmd_create(service: WalletService, args: argparse.Namespace) -> None:
    info = await service.create_wallet(args.name)
    print(f"Wallet created: {info.address}")
    print("Run 'gauss-wallet reveal' to write down your recovery phrase.")


async def cmd_import(service: WalletService, args: argparse.Namespace) -> None:
    phrase = getpass.getpass("Recovery phrase (12 words): ")
    info = await service.import_wallet(phrase, args.name or "Imported Wallet")
    print(f"Wallet imported: {info.address}")


async def cmd_import_key(service: WalletService, args: argparse.Namespace) -> None:
    private_key = getpass.getpass("Private key (hex): ")
    address = await service.manager.import_private_key(private_key, args.name or "Imported Wallet")
    print(f"Wallet imported: {address}")


async def cmd_address(service: WalletService, args: argparse.Namespace) -> None:
    info = await service.load()
    if info is None:
        raise WalletError("No wallet found")
    label = f" ({info.name})" if info.name else ""
    print(f"{info.address}{label}")


async def cmd_balance(service: WalletService, args: argparse.Namespace) -> None:
    info = await service.load()
    if info is None:
        raise WalletError("No wallet found")
    if info.balance is None:
        print("Balance unavailable")
    else:
        print(format_amount(info.balance, service.settings.network_config))


async def cmd_history(service: WalletService, args: argparse.Namespace) -> None:
    info = await service.load()
    if info is None:
        raise WalletError("No wallet found")
    records = await service.refresh_history(page=args.page, limit=args.limit)
    if not records:
        print("No transactions")
    for tx in records:
        direction = "OUT" if tx.is_outgoing(info.address) else "IN "
        counterparty = tx.to if direction == "OUT" else tx.sender
        print(f"{tx.format_datetime()}  {direction}  {tx.amount:>20}  {counterparty}  {tx.status}")


async def cmd_send(service: WalletService, args: argparse.Namespace) -> None:
    signed, result = await service.send(args.to, args.amount, fee=args.fee, data=args.data)
    print(f"Signed:    {signed.hash}")
    print(f"Broadcast: {result.tx_hash}")
    if result.message:
        print(result.message)


async def cmd_reveal(service: WalletService, args: argparse.Namespace) -> None:
    phrase = await service.manager.reveal_mnemonic()
    if phrase is None:
        print("This wallet was imported from a private key and has no recovery phrase.")
        return
    print("Write these words down in order and keep them offline:")
    for i, word in enumerate(phrase.split(), start=1):
        print(f"{i:2d}. {word}")


async def cmd_export(service: WalletService, args: argparse.Namespace) -> None:
    passphrase = getpass.getpass("Backup passphrase: ")
    if passphrase != getpass.getpass("Confirm passphrase: "):
        raise WalletError("Passphrases do not match")
    blob = await service.manager.export_backup(passphrase)
    out = Path(args.out)
    out.write_text(blob.to_json(), encoding="utf-8")
    print(f"Encrypted backup written to {out}")


async def cmd_restore(service: WalletService, args: argparse.Namespace) -> None:
    blob = Path(args.input).read_text(encoding="utf-8")
    passphrase = getpass.getpass("Backup passphrase: ")
    address = await service.manager.restore_backup(blob, passphrase, args.name)
    print(f"Wallet restored: {address}")


async def cmd_destroy(service: WalletService, args: argparse.Namespace) -> None:
    if not args.yes:
        answer = input("Delete this wallet from this device? Type 'delete' to confirm: ")
        if answer.strip() != "delete":
            print("Aborted")
            return
    await service.delete_wallet()
    print("Wallet deleted")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gauss-wallet",
        description="Self-custodial Gauss wallet. Keys never leave this device.",
    )
    parser.add_argument("--wallet-dir", help="Directory for keystore and metadata files")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a new wallet")
    create.add_argument("--name", help="Display name")
    create.set_defaults(func=cmd_create)

    imp = subparsers.add_parser("import", help="Import a wallet from a recovery phrase")
    imp.add_argument("--name", help="Display name")
    imp.set_defaults(func=cmd_import)

    imp_key = subparsers.add_parser("import-key", help="Import a wallet from a raw private key")
    imp_key.add_argument("--name", help="Display name")
    imp_key.set_defaults(func=cmd_import_key)

    address = subparsers.add_parser("address", help="Show the wallet address")
    address.set_defaults(func=cmd_address)

    balance = subparsers.add_parser("balance", help="Show the wallet balance")
    balance.set_defaults(func=cmd_balance)

    history = subparsers.add_parser("history", help="Show transaction history")
    history.add_argument("--page", type=int, default=1)
    history.add_argument("--limit", type=int, default=50)
    history.set_defaults(func=cmd_history)

    send = subparsers.add_parser("send", help="Sign and broadcast a transfer")
    send.add_argument("--to", required=True, help="Recipient address (0x...)")
    send.add_argument("--amount", required=True, help="Amount as a decimal string")
    send.add_argument("--fee", help="Fee as a decimal string (default from settings)")
    send.add_argument("--data", help="Optional hex payload")
    send.set_defaults(func=cmd_send)

    reveal = subparsers.add_parser("reveal", help="Show the recovery phrase for backup")
    reveal.set_defaults(func=cmd_reveal)

    export = subparsers.add_parser("export", help="Write a passphrase-encrypted backup")
    export.add_argument("--out", required=True, help="Backup file path")
    export.set_defaults(func=cmd_export)

    restore = subparsers.add_parser("restore", help="Restore from an encrypted backup")
    restore.add_argument("--in", dest="input", required=True, help="Backup file path")
    restore.add_argument("--name", help="Display name")
    restore.set_defaults(func=cmd_restore)

    destroy = subparsers.add_parser("destroy", help="Delete the wallet from this device")
    destroy.add_argument("--yes", action="store_true", help="Skip confirmation")
    destroy.set_defaults(func=cmd_destroy)

    return parser


async def run(args: argparse.Namespace, settings: Settings) -> None:
    wallet_dir = Path(args.wallet_dir) if args.wallet_dir else None
    service = build_service(settings, wallet_dir)
    logger.debug(f"Running '{args.command}'")
    try:
        await args.func(service, args)
    finally:
        await service.ledger.close()


def main(argv: Optional[list[str]] = None) -> None:
    """Application entry point."""
    settings = load_settings()
    # Configure logging before anything else
    configure_logging(getattr(logging, settings.log_level, logging.INFO), settings.log_retention_days)

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        asyncio.run(run(args, settings))
    except (WalletError, LedgerError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
