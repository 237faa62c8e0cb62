#!/usr/bin/env python3
"""
JiraLink CLI - inspect and operate the Jira <-> chat bridge state
"""

import sys
import json
import argparse
from pathlib import Path
from loguru import logger

from jiralink.auth.qsh import canonical_request, query_string_hash, split_url
from jiralink.auth.signer import RequestSigner
from jiralink.config.settings import settings
from jiralink.connect.descriptor import build_descriptor
from jiralink.connect.lifecycle import handle_installed
from jiralink.core.exceptions import JiraLinkError
from jiralink.formatting.jira_markup import translate
from jiralink.storage.connection_registry import ConnectionRegistry
from jiralink.storage.installation_store import CredentialStore
from jiralink.storage.persistence import JsonFileBackend


def configure_logging(verbose: bool = False):
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else settings.log_level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _read_json(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def cmd_install(args, backend: JsonFileBackend) -> int:
    credential = handle_installed(_read_json(args.file), CredentialStore(backend))
    print(f"✅ Installed {credential.client_key} ({credential.base_url})")
    return 0


def cmd_uninstall(args, backend: JsonFileBackend) -> int:
    if CredentialStore(backend).clear():
        print("✅ Credential removed")
    else:
        print("Nothing was installed")
    return 0


def cmd_sign(args, backend: JsonFileBackend) -> int:
    signer = RequestSigner(CredentialStore(backend))
    url, token = signer.sign_url(args.method, args.path)
    print(url)
    print(f"Authorization: {token.authorization_header}")
    return 0


def cmd_qsh(args, backend: JsonFileBackend) -> int:
    path, query = split_url(args.path)
    print(canonical_request(args.method, path, query, args.base_url))
    print(query_string_hash(args.method, path, query, args.base_url))
    return 0


def cmd_connections(args, backend: JsonFileBackend) -> int:
    connections = ConnectionRegistry(backend).get_connections(args.room)
    if not connections:
        print("No connected rooms")
        return 0

    for connection in connections:
        keys = ", ".join(sorted(connection.connected_projects)) or "-"
        print(f"{connection.room_id}: {keys}")
    return 0


def cmd_descriptor(args, backend: JsonFileBackend) -> int:
    print(json.dumps(build_descriptor(args.base_url), indent=2))
    return 0


def cmd_translate(args, backend: JsonFileBackend) -> int:
    body = sys.stdin.read() if args.file == "-" else Path(args.file).read_text(encoding="utf-8")
    print(translate(body))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jiralink",
        description="JiraLink - Atlassian Connect bridge between Jira Cloud and chat rooms",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  jiralink install installed.json              # Store the credential from an install callback body
  jiralink sign GET "/rest/api/3/issue/ABC-1"  # Print a signed URL and Authorization header
  jiralink qsh GET "/rest/api/3/project/search?expand=description"
  jiralink connections --room GENERAL          # Show projects connected to a room
  jiralink descriptor --base-url https://chat.example.com/api/apps/public/jira
  jiralink translate comment.txt               # Jira wiki markup -> chat markdown
        """
    )
    parser.add_argument(
        '--storage',
        default=None,
        help=f'JSON storage file (default: {settings.storage_path})'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('install', help='Store the credential from an install callback JSON file')
    p.add_argument('file', help='Path to the install callback body')
    p.set_defaults(func=cmd_install)

    p = sub.add_parser('uninstall', help='Remove the stored credential')
    p.set_defaults(func=cmd_uninstall)

    p = sub.add_parser('sign', help='Sign a request against the installed Jira site')
    p.add_argument('method', help='HTTP method')
    p.add_argument('path', help='Path with optional query, e.g. /rest/api/3/project/search?expand=description')
    p.set_defaults(func=cmd_sign)

    p = sub.add_parser('qsh', help='Print the canonical request and its query string hash')
    p.add_argument('method', help='HTTP method')
    p.add_argument('path', help='Path with optional query')
    p.add_argument('--base-url', default=None, help='Jira base URL whose context path is stripped')
    p.set_defaults(func=cmd_qsh)

    p = sub.add_parser('connections', help='List room <-> project connections')
    p.add_argument('--room', default=None, help='Only show this room')
    p.set_defaults(func=cmd_connections)

    p = sub.add_parser('descriptor', help='Print the Atlassian Connect descriptor')
    p.add_argument('--base-url', default=None, help=f'Public app URL (default: {settings.app_base_url})')
    p.set_defaults(func=cmd_descriptor)

    p = sub.add_parser('translate', help='Translate Jira wiki markup to chat markdown')
    p.add_argument('file', help='File with the markup, or - for stdin')
    p.set_defaults(func=cmd_translate)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point"""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    backend = JsonFileBackend(args.storage)
    try:
        return args.func(args, backend)
    except JiraLinkError as e:
        logger.error(str(e))
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read input: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
