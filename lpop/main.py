import os
import sys
import logging
import argparse
from typing import Iterable, Optional

from lpop.core import seal_for, open_with_device_key
from lpop.exceptions import AuthenticationError, DecodeError, LpopError
from lpop.models import ExchangeParams, bcolors
from lpop.utils.keystore import DeviceKeyManager
from lpop.utils.messages import format_ask_message

def parse_pairs(lines: Iterable[str]) -> list[tuple[str, str]]:
    """Turn KEY=VALUE lines into pairs, skipping blanks and # comments."""
    pairs = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected KEY=VALUE, got: {line}")
        pairs.append((key.strip(), value))
    return pairs

def write_private(path: str, text: str):
    """Write received secrets readable by the owner only (0600, like the device key)."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(text)
    os.chmod(path, 0o600)

def build_parser() -> argparse.ArgumentParser:
    defaults = ExchangeParams()
    parser = argparse.ArgumentParser(prog="lpop", description="lpop - share secrets with a post-quantum sealed token")
    parser.add_argument("--key-dir", default=defaults.key_dir, help="Directory holding the device key")
    parser.add_argument("--expiry-days", type=int, default=defaults.expiry_days, help="Device key lifetime in days")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    ask_parser = subparsers.add_parser("ask", help="Print a request message containing your device public key")
    ask_parser.add_argument("--service", default=os.path.basename(os.getcwd()), help="Repository / service name")
    ask_parser.add_argument("--env", help="Environment name")

    give_parser = subparsers.add_parser("give", help="Seal secrets for a colleague's public key")
    give_parser.add_argument("public_key", help="Recipient public key (base-58)")
    give_parser.add_argument("pairs", nargs="*", help="KEY=VALUE pairs (read from stdin when omitted)")

    receive_parser = subparsers.add_parser("receive", help="Open a token sealed for this device")
    receive_parser.add_argument("token", help="Token produced by 'lpop give'")
    receive_parser.add_argument("--out", help="Write KEY=VALUE lines to this file instead of stdout")

    subparsers.add_parser("status", help="Show device key status")
    subparsers.add_parser("cleanup", help="Remove an expired or corrupt device key")
    subparsers.add_parser("pubkey", help="Print the device public key")
    return parser

def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        params = ExchangeParams(key_dir=args.key_dir, expiry_days=args.expiry_days)
        manager = DeviceKeyManager(params=params)
        match args.command:
            case "ask":
                device_key = manager.get_or_create()
                print(format_ask_message(device_key.encoded_public_key, args.service, args.env))
            case "give":
                pairs = parse_pairs(args.pairs) if args.pairs else parse_pairs(sys.stdin)
                if not pairs:
                    raise ValueError("No secrets to give")
                envelope = seal_for(pairs, args.public_key)
                print(envelope.to_token())
                print(f"{bcolors.OKGREEN}Sealed {len(pairs)} secret(s). Send the line above to the recipient.{bcolors.ENDC}",
                      file=sys.stderr)
            case "receive":
                try:
                    secret_set = open_with_device_key(args.token, manager)
                except (AuthenticationError, DecodeError) as e:
                    print(f"{bcolors.FAIL}ERROR:{bcolors.ENDC} token could not be decrypted or authenticated ({e})",
                          file=sys.stderr)
                    return 1
                lines = "".join(f"{key}={value}\n" for key, value in secret_set.items())
                if args.out:
                    write_private(args.out, lines)
                    print(f"{bcolors.OKGREEN}Received {len(secret_set)} secret(s) into {args.out}{bcolors.ENDC}")
                else:
                    sys.stdout.write(lines)
            case "status":
                status = manager.status()
                if status.exists:
                    print(f"Device key: {bcolors.OKGREEN}valid{bcolors.ENDC}, expires in {status.days_until_expiry} day(s)")
                else:
                    print(f"Device key: {bcolors.WARNING}none{bcolors.ENDC} (one is created on next ask/receive)")
            case "cleanup":
                if manager.cleanup():
                    print("No valid device key remains")
                else:
                    print("Device key is still valid, nothing removed")
            case "pubkey":
                print(manager.get_or_create().encoded_public_key)
            case _:
                parser.print_help()
                return 1
    except (LpopError, ValueError, OSError) as e:
        print(f"{bcolors.FAIL}ERROR:{bcolors.ENDC}", e, file=sys.stderr)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
