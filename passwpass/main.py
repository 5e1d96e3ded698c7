"""
Command line entry point for PasswPass.
"""

import sys
import argparse
import logging
from typing import List, Optional

from . import config, vault_manager
from .analyzer import requires_acknowledgement
from .errors import ConfigurationError, InvalidConfigError
from .generator import GeneratorConfig

EXIT_OK = 0
EXIT_UNREADABLE = 1
EXIT_CRITICAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="passwpass",
        description="Encrypted personal credential vault.",
        epilog="The vault passphrase is read from the PASSWPASS_SECRET_KEY environment variable."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--version", action="version", version=f"{config.APP_NAME} {config.APP_VERSION}")

    subparsers = parser.add_subparsers(title="Commands", dest="command", required=True, metavar="<command>")

    subparsers.add_parser("analyze", help="Report duplicate, weak and incomplete entries.")

    check = subparsers.add_parser("check", help="Rate a password as Weak, Medium or Strong.")
    check.add_argument("password")

    generate = subparsers.add_parser("generate", help="Generate a random password.")
    generate.add_argument("-l", "--length", type=int, default=config.PASSWORD_GENERATOR_DEFAULT_LENGTH)
    generate.add_argument("--no-numbers", action="store_true")
    generate.add_argument("--no-symbols", action="store_true")
    generate.add_argument("--no-uppercase", action="store_true")
    generate.add_argument("--no-lowercase", action="store_true")

    subparsers.add_parser("categories", help="List categories with their record counts.")

    export = subparsers.add_parser("export", help="Write an unencrypted JSON backup.")
    export.add_argument("file", nargs="?", default=None)

    return parser


class PasswPassCli:
    """Runs one command against the configured vault."""

    def __init__(self, out=None):
        self.out = out or sys.stdout

    def write(self, text: str = "") -> None:
        print(text, file=self.out)

    def run(self, args: argparse.Namespace) -> int:
        handler = getattr(self, f"cmd_{args.command}")
        return handler(args)

    def cmd_analyze(self, args) -> int:
        session = vault_manager.open_session()
        if session.vault_load.corrupt:
            self.write(f"Vault could not be read: {session.vault_load.error}")
            return EXIT_UNREADABLE

        findings = session.analyze()
        if not findings:
            self.write("No security issues found!")
            return EXIT_OK
        for finding in findings:
            self.write(f"[{finding.severity.value}] {finding.detail}")
        return EXIT_CRITICAL if requires_acknowledgement(findings) else EXIT_OK

    def cmd_check(self, args) -> int:
        self.write(str(vault_manager.classify_strength(args.password)))
        return EXIT_OK

    def cmd_generate(self, args) -> int:
        options = GeneratorConfig(
            length=args.length,
            numbers=not args.no_numbers,
            symbols=not args.no_symbols,
            uppercase=not args.no_uppercase,
            lowercase=not args.no_lowercase,
        )
        self.write(vault_manager.generate_password(options))
        return EXIT_OK

    def cmd_categories(self, args) -> int:
        session = vault_manager.open_session()
        counts = session.category_counts()
        if not counts:
            self.write("No categories exist yet.")
        for name, count in counts.items():
            self.write(f"{name} ({count} passwords)")
        uncategorized = len(session.uncategorized_records())
        if uncategorized:
            self.write(f"Uncategorized ({uncategorized} passwords)")
        return EXIT_OK

    def cmd_export(self, args) -> int:
        session = vault_manager.open_session()
        if session.vault_load.corrupt:
            self.write(f"Vault could not be read: {session.vault_load.error}")
            return EXIT_UNREADABLE
        result = session.export_backup(args.file)
        if not result:
            self.write(f"Error creating backup: {result.reason}")
            return EXIT_UNREADABLE
        self.write("Backup saved.")
        return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s')
    try:
        return PasswPassCli().run(args)
    except (ConfigurationError, InvalidConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_UNREADABLE


if __name__ == "__main__":
    sys.exit(main())
