"""
CLI entrypoint for the taxonomy context client.

This script performs the following steps:
- loads .env and configs/client.yaml (environment variables override the file)
- configures logging (console + optional rotating log file)
- fetches organizations and locations (GraphQL first, REST fallback)
- restores the persisted organization/location selection
- runs the requested subcommand (list, tree, select, show, reset)
"""

import argparse
import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

from application import TaxonomyService
from domain.context import TaxonomyStore
from domain.errors import TaxonomyError
from domain.hierarchy import build_tree, flatten_tree
from domain.schemas import TaxonomyEntity
from infrastructure.api.client import APIError
from infrastructure.api.factory import make_clients
from infrastructure.config import ClientConfig, load_client_config
from infrastructure.constants import CLIENT_CONFIG_FILE
from infrastructure.io import SelectionStorage, ensure_exists
from infrastructure.observability import configure_logging, set_log_context

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Inspect and select the Foreman organization/location context")
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help=f"Path to client.yaml (default: {CLIENT_CONFIG_FILE} if present, else environment only)",
    )
    p.add_argument(
        "--env",
        type=str,
        default=".env",
        help="Path to .env file (default: .env, skipped when missing)",
    )
    p.add_argument(
        "--console-level",
        type=str,
        default="INFO",
        choices=LOG_LEVELS,
        help="Console log level",
    )
    p.add_argument(
        "--file-level",
        type=str,
        default="DEBUG",
        choices=LOG_LEVELS,
        help="File log level",
    )
    p.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file (rotated)",
    )
    p.add_argument(
        "--mine",
        action="store_true",
        help="Only list taxonomies assigned to the authenticated user",
    )

    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("orgs", help="List available organizations")
    sub.add_parser("locations", help="List available locations")

    tree = sub.add_parser("tree", help="Show the organization or location hierarchy")
    tree.add_argument("kind", choices=["orgs", "locations"])

    select = sub.add_parser("select", help="Select organization and/or location (numeric or GraphQL ids)")
    select.add_argument("--organization", type=str, default=None)
    select.add_argument("--location", type=str, default=None)

    sub.add_parser("show", help="Show the current selection")
    sub.add_parser("reset", help="Forget the persisted selection")
    return p.parse_args(argv)


def _load_config(args: argparse.Namespace) -> ClientConfig:
    env_file = Path(args.env)
    if env_file.exists():
        load_dotenv(env_file, override=True)

    if args.config is not None:
        config_path: Path | None = Path(args.config)
        ensure_exists(config_path, "client.yaml")
    else:
        config_path = CLIENT_CONFIG_FILE if CLIENT_CONFIG_FILE.exists() else None

    return load_client_config(config_path)


def _print_entities(entities: list[TaxonomyEntity], current_id: int | None) -> None:
    for entity in entities:
        marker = "*" if entity.id == current_id else " "
        print(f"{marker} {entity.id:>5}  {entity.display_name}")


def _print_tree(entities: list[TaxonomyEntity], current_id: int | None) -> None:
    for node in flatten_tree(build_tree(entities), include_collapsed=True):
        marker = "*" if node.entity.id == current_id else " "
        print(f"{marker} {'  ' * node.level}{node.entity.name} [{node.entity.id}]")


def _print_selection(store: TaxonomyStore) -> None:
    ctx = store.context
    print(f"organization: {store.selected_organization_name or '-'} ({ctx.organization.id if ctx.organization else '-'})")
    print(f"location:     {store.selected_location_name or '-'} ({ctx.location.id if ctx.location else '-'})")
    validation = store.validate_current_selection()
    for message in validation.errors + validation.warnings:
        print(f"! {message}")


async def _run(args: argparse.Namespace, cfg: ClientConfig) -> None:
    store = TaxonomyStore()
    storage = SelectionStorage(cfg.state_file)

    if args.command == "reset":
        storage.clear()
        logger.info("Removed persisted selection (%s)", storage.path)
        return

    clients = make_clients(cfg, store)
    service = TaxonomyService(clients.taxonomy, store, storage, current_user_only=args.mine)
    try:
        await service.initialize()
        ctx = store.context
        org_id = ctx.organization.id if ctx.organization else None
        loc_id = ctx.location.id if ctx.location else None

        if args.command == "orgs":
            _print_entities(list(ctx.available_organizations), org_id)
        elif args.command == "locations":
            _print_entities(list(ctx.available_locations), loc_id)
        elif args.command == "tree":
            if args.kind == "orgs":
                _print_tree(list(ctx.available_organizations), org_id)
            else:
                _print_tree(list(ctx.available_locations), loc_id)
        elif args.command == "select":
            service.select(organization_id=args.organization, location_id=args.location)
            _print_selection(store)
        elif args.command == "show":
            _print_selection(store)
    finally:
        service.close()
        await clients.aclose()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    configure_logging(
        log_file=Path(args.log_file) if args.log_file else None,
        console_level=getattr(logging, args.console_level),
        file_level=getattr(logging, args.file_level),
    )

    cfg = _load_config(args)
    set_log_context(
        session_key=f"{cfg.base_url}|{cfg.username or ''}",
        base_url=cfg.base_url,
    )
    logger.info("Using %s (graphql=%s)", cfg.base_url, "on" if cfg.graphql_enabled else "off")

    try:
        asyncio.run(_run(args, cfg))
    except (TaxonomyError, APIError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
