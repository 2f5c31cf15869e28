"""
Gentyr CLI: entry point for hooks, the server launcher and operator tools.

Usage:
    gentyr guard                          # PreToolUse hook (JSON on stdin)
    gentyr scan "cat .env"                # Print the decision for one command
    gentyr launch <server> <script> ...   # Resolve credentials, run server
    gentyr encrypt --value SECRET         # Encrypt a credential for .mcp.json
    gentyr health                         # SessionStart credential health check
    gentyr leak-check                     # UserPromptSubmit secret leak warning
    gentyr version                        # Show version
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="gentyr",
        description="Gentyr: credential protection for agent tool calls and MCP servers.",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command")

    # guard
    subparsers.add_parser("guard", help="Run the PreToolUse credential guard hook")

    # scan
    scan_parser = subparsers.add_parser("scan", help="Check one command or file path")
    scan_parser.add_argument("target", help="Shell command (or path with --file)")
    scan_parser.add_argument("--file", action="store_true", help="Treat target as a file path")
    scan_parser.add_argument("--cwd", type=str, help="Directory to resolve paths from")

    # launch
    launch_parser = subparsers.add_parser(
        "launch", help="Resolve credentials from 1Password, then run an MCP server"
    )
    launch_parser.add_argument("server", help="Server name in protected-actions.json")
    launch_parser.add_argument("script", help="Python server script to run")
    launch_parser.add_argument("args", nargs=argparse.REMAINDER, help="Arguments for the script")

    # encrypt
    enc_parser = subparsers.add_parser("encrypt", help="Encrypt a credential value")
    enc_parser.add_argument("--value", type=str, help="Value to encrypt")
    enc_parser.add_argument("--env-var", type=str, help="Print as a .mcp.json env entry")
    enc_parser.add_argument("--generate-key", action="store_true", help="Generate a protection key")
    enc_parser.add_argument(
        "--force", action="store_true", help="Replace an existing key (invalidates envelopes)"
    )
    enc_parser.add_argument("--decrypt", type=str, metavar="ENVELOPE", help="Decrypt an envelope")

    # health
    subparsers.add_parser("health", help="Check vault mappings and 1Password sign-in")

    # leak-check
    subparsers.add_parser("leak-check", help="Warn if a prompt on stdin contains a secret")

    # version
    subparsers.add_parser("version", help="Show version")

    args = parser.parse_args(argv)

    if args.version or args.command == "version":
        from gentyr import __version__

        print(f"gentyr {__version__}")
        return 0

    _setup_logging()

    if args.command == "guard":
        return _cmd_guard()
    elif args.command == "scan":
        return _cmd_scan(args)
    elif args.command == "launch":
        return _cmd_launch(args)
    elif args.command == "encrypt":
        return _cmd_encrypt(args)
    elif args.command == "health":
        return _cmd_health()
    elif args.command == "leak-check":
        return _cmd_leak_check()
    else:
        parser.print_help()
        return 0


def _setup_logging() -> None:
    from gentyr.config import get_config

    # stdout carries hook JSON; logs go to stderr
    logging.basicConfig(
        level=get_config().log_level,
        format="[gentyr:%(name)s] %(levelname)s %(message)s",
        stream=sys.stderr,
    )


def _system_message(message: str | None) -> str:
    if message:
        return json.dumps({"continue": True, "suppressOutput": False, "systemMessage": message})
    return json.dumps({"continue": True, "suppressOutput": True})


def _is_spawned_session() -> bool:
    return os.environ.get("CLAUDE_SPAWNED_SESSION") == "true"


def _cmd_guard() -> int:
    from gentyr.gateway.interceptor import run

    return run()


def _cmd_scan(args: argparse.Namespace) -> int:
    from gentyr.gateway.interceptor import load_scanner

    cwd = args.cwd or os.environ.get("CLAUDE_PROJECT_DIR") or os.getcwd()
    scanner = load_scanner(cwd)
    if args.file:
        result = scanner.scan_file(args.target, cwd=cwd)
    else:
        result = scanner.scan_command(args.target, cwd=cwd)
    print(json.dumps({"decision": result.decision, "reason": result.reason}))
    return 0 if result.allowed else 2


def _cmd_launch(args: argparse.Namespace) -> int:
    from gentyr.gateway.launcher import launch

    try:
        launch(args.server, args.script, args.args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def _cmd_encrypt(args: argparse.Namespace) -> int:
    from gentyr.config import get_config
    from gentyr.gateway.credentials import seal, unseal
    from gentyr.vault.crypto import generate_key, write_key

    cfg = get_config()
    key_path = cfg.protection_key_path

    if args.generate_key:
        if key_path.exists() and not args.force:
            print(
                f"Protection key already exists at {key_path}. Replacing it makes every "
                "existing envelope unrecoverable; pass --force to do it anyway.",
                file=sys.stderr,
            )
            return 1
        write_key(key_path, generate_key())
        print("Generated new protection key.")
        print(f"Saved to: {key_path}")
        print()
        print("IMPORTANT: Make the key file root-owned:")
        print(f"  sudo chown root:root {key_path}")
        print(f"  sudo chmod 600 {key_path}")
        return 0

    if args.decrypt:
        try:
            print(unseal(args.decrypt, cfg))
        except (FileNotFoundError, ValueError) as e:
            print(f"Decryption failed: {e}", file=sys.stderr)
            return 1
        return 0

    value = args.value
    if value is None:
        import getpass

        value = getpass.getpass("Enter the credential value to encrypt: ")
    if not value.strip():
        print("No value provided.", file=sys.stderr)
        return 1

    try:
        envelope = seal(value, cfg)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.env_var:
        print(f'"{args.env_var}": "{envelope}"')
    else:
        print(envelope)
    return 0


def _cmd_health() -> int:
    from gentyr.config import get_config
    from gentyr.gateway.health import check_credential_health

    if _is_spawned_session():
        print(_system_message(None))
        return 0

    report = check_credential_health(get_config())
    print(_system_message(report.message or None))
    return 0


def _cmd_leak_check() -> int:
    from gentyr.guard.leak_detector import scan_prompt

    if _is_spawned_session():
        print(_system_message(None))
        return 0

    try:
        report = scan_prompt(sys.stdin.read())
    except (OSError, UnicodeDecodeError) as e:
        # Warning-only hook: an unreadable prompt is never blocked
        logging.getLogger(__name__).error("Leak check skipped: %s", e)
        print(_system_message(None))
        return 0

    print(_system_message(report.warning() or None))
    return 0


if __name__ == "__main__":
    sys.exit(main())
