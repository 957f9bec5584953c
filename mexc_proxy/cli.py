"""CLI tool for admin operations.

Usage:
    python -m mexc_proxy.cli generate-key
    python -m mexc_proxy.cli issue-token <user_id> [email]
"""

import sys

from mexc_proxy.services.auth import create_access_token
from mexc_proxy.services.encryption import generate_key


def print_new_key():
    """Print a fresh AES-256 master key for TP_ENCRYPTION_KEY."""
    print(generate_key())
    print(
        "\nSet it as TP_ENCRYPTION_KEY. Keep it safe: stored credentials "
        "cannot be decrypted without it.",
        file=sys.stderr,
    )


def issue_token(user_id: str, email: str | None = None):
    """Print a bearer token for local development, signed with TP_JWT_SECRET."""
    print(create_access_token(subject=user_id, email=email))


def main(argv: list[str] | None = None):
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("Usage: python -m mexc_proxy.cli <command>")
        print("Commands: generate-key, issue-token <user_id> [email]")
        sys.exit(1)

    command = args[0]
    if command == "generate-key":
        print_new_key()
    elif command == "issue-token":
        if len(args) < 2:
            print("Usage: python -m mexc_proxy.cli issue-token <user_id> [email]")
            sys.exit(1)
        issue_token(args[1], args[2] if len(args) > 2 else None)
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
