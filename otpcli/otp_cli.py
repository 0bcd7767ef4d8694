#!/usr/bin/env python3
"""
otp_cli.py — Command line front-end for otpcli.

Subcommands:
- add                 : add/update a base32 TOTP secret
- import              : import an RSA token file (needs an RSA token codec)
- list                : list token names, optionally filtered by prefix
- delete              : delete a token
- migrate-to-keychain : move inline secrets into the OS keychain
- generate            : print the current code for a token

A bare name is shorthand for `generate <name>`:

    otpcli github            # prints the code, no trailing newline
    otpcli -n github         # same, with a newline
    otpcli --copy github     # also copy it to the clipboard
    otpcli add github JBSWY3DPEHPK3PXP --keychain
"""

import argparse
import logging
import sys
import time

from .clipboard import SYSTEM_CLIPBOARD, copy_code
from .config_manager import ConfigStore
from .errors import OtpError, UnknownName
from .models import StorageKind, TokenAlgorithm
from .otp_core import DEFAULT_TIME_STEP, seconds_remaining
from .secret_store import KeyringKeychain, SecretResolver
from .tokens import TokenService

logger = logging.getLogger(__name__)

COMMANDS = ("add", "import", "list", "delete", "migrate-to-keychain", "generate")
TOTP_ALGORITHMS = [a.value for a in TokenAlgorithm if a.is_totp]


def positive_int(value):
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


# --- CLI command handlers ---
def cmd_add(args, service, store):
    storage = StorageKind.KEYCHAIN if args.keychain else StorageKind.INLINE
    config = service.add_secret(
        args.name, args.secret, storage,
        TokenAlgorithm(args.algorithm), args.digits, args.period,
    )
    store.save(config)
    service.flush_discards()
    return 0


def cmd_import(args, service, store):
    storage = StorageKind.KEYCHAIN if args.keychain else StorageKind.INLINE
    store.save(service.import_rsa_token(args.name, args.path, args.pin, storage))
    return 0


def cmd_list(args, service, store):
    for name in service.list_names(args.prefix):
        print(name)
    return 0


def cmd_delete(args, service, store):
    store.save(service.delete_secret(args.name))
    service.flush_discards()
    return 0


def cmd_migrate(args, service, store):
    store.save(service.migrate_to_keychain())
    return 0


def cmd_generate(args, service, store):
    code = service.generate(args.name)
    record = service.lookup(args.name)
    if record.algorithm.is_totp:
        logger.info("%s: valid ~%ds", args.name, seconds_remaining(service.clock(), record.period or DEFAULT_TIME_STEP))

    if args.copy:
        copy_code(args.clipboard, code)
        logger.info("Copied code for %s to the clipboard", args.name)

    if args.newline:
        print(code)
    else:
        sys.stdout.write(code)
        sys.stdout.flush()
    return 0


# --- Argparse builder ---
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="otpcli", description="TOTP / RSA token code generator")
    p.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    p.add_argument("-n", "--newline", action="store_true", help="End the output with a newline")
    p.add_argument("--copy", action="store_true", help="Also copy the code to the clipboard")
    p.add_argument("--config-dir", help="Config directory (default: $OTPCLI_CONFIG_DIR or ~/.config/otpcli)")
    sub = p.add_subparsers(dest="cmd")

    # add
    pa = sub.add_parser("add", help="Add/Update a TOTP secret")
    pa.add_argument("name")
    pa.add_argument("secret", help="Base32 secret")
    pa.add_argument("--keychain", action="store_true", help="Store the secret in the OS keychain")
    pa.add_argument("--algorithm", choices=TOTP_ALGORITHMS, default=TokenAlgorithm.TOTP_SHA1.value)
    pa.add_argument("--digits", type=int, help="Code length (default 6)")
    pa.add_argument("--period", type=positive_int, help="Time step in seconds (default 30)")
    pa.set_defaults(func=cmd_add)

    # import
    pi = sub.add_parser("import", help="Import an RSA token file")
    pi.add_argument("name")
    pi.add_argument("path")
    pi.add_argument("pin")
    pi.add_argument("--keychain", action="store_true", help="Store the token in the OS keychain")
    pi.set_defaults(func=cmd_import)

    # list
    pl = sub.add_parser("list", help="List token names")
    pl.add_argument("prefix", nargs="?")
    pl.set_defaults(func=cmd_list)

    # delete
    pd = sub.add_parser("delete", help="Delete a token")
    pd.add_argument("name")
    pd.set_defaults(func=cmd_delete)

    # migrate-to-keychain
    pm = sub.add_parser("migrate-to-keychain", help="Move secrets from the config into the keychain")
    pm.set_defaults(func=cmd_migrate)

    # generate
    pg = sub.add_parser("generate", help="Generate a code")
    pg.add_argument("name")
    pg.add_argument("-n", "--newline", action="store_true", default=argparse.SUPPRESS,
                    help="End the output with a newline")
    pg.add_argument("--copy", action="store_true", default=argparse.SUPPRESS,
                    help="Also copy the code to the clipboard")
    pg.set_defaults(func=cmd_generate)

    return p


def with_default_command(argv):
    """Insert `generate` in front of a bare token name."""
    argv = list(argv)
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--config-dir":
            i += 2
            continue
        if arg.startswith("-"):
            i += 1
            continue
        if arg not in COMMANDS:
            argv.insert(i, "generate")
        break
    return argv


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s", stream=sys.stderr)


def main(argv=None, keychain=None, rsa_codec=None, clock=time.time, clipboard=SYSTEM_CLIPBOARD) -> int:
    """
    Run the CLI and return the exit status.

    Arguments:
        argv: arguments without the program name (sys.argv[1:] if None)
        keychain: Keychain collaborator (OS keychain via keyring if None)
        rsa_codec: optional RsaTokenCodec enabling `import` and SToken entries
        clock: time source for code generation
        clipboard: Clipboard used by --copy (None disables copying)
    """
    parser = build_parser()
    args = parser.parse_args(with_default_command(sys.argv[1:] if argv is None else argv))
    configure_logging(args.verbose)

    if args.cmd is None:
        print("Missing either a command or TOTP token name to generate", file=sys.stderr)
        parser.print_help(sys.stderr)
        return 1

    args.clipboard = clipboard
    store = ConfigStore(args.config_dir)
    try:
        config = store.load()
        resolver = SecretResolver(keychain if keychain is not None else KeyringKeychain())
        service = TokenService(config, resolver, rsa_codec=rsa_codec, clock=clock)
        return args.func(args, service, store)
    except UnknownName as e:
        print(f"Error: {e}", file=sys.stderr)
        parser.print_help(sys.stderr)
        return 1
    except OtpError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
