#!/usr/bin/env python3
"""
Tenant administration commands.

Re-migrates every tenant database, runs one Alembic command (or the seeder)
against a single tenant, and resumes provisioning of a restaurant whose
creation stopped half way.
"""

import asyncio
import logging
import shlex
import sys
from typing import List, Optional

from delivery.core.config.logging import init_logging
from delivery.core.exceptions.exception_classes import ProvisioningException
from delivery.core.project_path import ALEMBIC_INI_PATH
from delivery.core.tenant_scope import bound_store
from delivery.db.migrations import TENANT, MigrationOptions, alembic_lock
from delivery.db.multi_tenant_session import multi_tenant_manager
from delivery.repositories.restaurants import RestaurantRepository
from delivery.services.restaurant_updater import RestaurantUpdaterService
from delivery.services.tenant_migrations import TenantMigrationService
from delivery.services.tenant_provisioning import TenantProvisioner, is_placeholder

logger = logging.getLogger(__name__)


def build_alembic_argv(command: str, database_name: str) -> List[str]:
    """
    Alembic argv for `command`, pointed at the tenant migration set of
    `database_name`. Options already present in the command are kept.
    """
    tokens = shlex.split(command)
    if tokens and tokens[0] == "alembic":
        tokens = tokens[1:]

    global_options: List[str] = []
    if not _has_option(tokens, "-c", "--config"):
        global_options += ["-c", str(ALEMBIC_INI_PATH)]
    if not _has_option(tokens, "-n", "--name"):
        global_options += ["--name", TENANT]
    if not _has_x_argument(tokens, "database"):
        global_options += ["-x", f"database={database_name}"]
    if "--raiseerr" not in tokens:
        global_options.append("--raiseerr")

    # global options have to precede the alembic sub command
    return global_options + tokens


def _has_option(tokens: List[str], short: str, long: str) -> bool:
    return any(
        token in (short, long) or token.startswith(f"{long}=")
        for token in tokens
    )


def _has_x_argument(tokens: List[str], key: str) -> bool:
    for index, token in enumerate(tokens):
        if token == "-x" and index + 1 < len(tokens):
            value = tokens[index + 1]
        elif token.startswith("-x") and len(token) > 2:
            value = token[2:]
        else:
            continue
        if value.split("=", 1)[0] == key:
            return True
    return False


def run_alembic(argv: List[str]) -> None:
    from alembic.config import CommandLine, Config

    cli = CommandLine(prog="alembic")
    options = cli.parser.parse_args(argv)
    if not hasattr(options, "cmd"):
        raise ValueError("No alembic command given")
    config = Config(file_=options.config, ini_section=options.name, cmd_opts=options)
    with alembic_lock:
        cli.run_cmd(config, options)


async def provision_all_tenants(options: MigrationOptions) -> int:
    async with multi_tenant_manager.get_central_session_factory()() as session:
        service = TenantMigrationService(RestaurantRepository(session))
        try:
            report = await service.migrate_all(options)
        except Exception as e:
            logger.error(f"Could not fetch restaurants: {e}")
            return 1

    if not report.succeeded and not report.failed:
        logger.info("No active tenants found.")
    for database_name, reason in report.failed:
        logger.error(f"Failed to migrate {database_name}: {reason}")
    logger.info("All tenant migrations completed.")
    return 0


async def run_command_for_tenant(restaurant_id: int, command: str) -> int:
    async with multi_tenant_manager.get_central_session_factory()() as session:
        restaurant = await RestaurantRepository(session).get_by_id(restaurant_id)

    if restaurant is None:
        logger.error(f"Tenant with ID {restaurant_id} not found.")
        return 1
    database_name = restaurant.database_name
    if is_placeholder(database_name):
        logger.error(f"Tenant {restaurant.name} is not provisioned yet, run provision-tenant {restaurant_id}")
        return 1

    logger.info(f"Running '{command}' for tenant {restaurant.name} ({database_name})")
    try:
        with bound_store(database_name):
            if command.strip() == "seed":
                from delivery.db.seed.seed import seed_tenant_database

                await seed_tenant_database(database_name)
            else:
                await asyncio.to_thread(run_alembic, build_alembic_argv(command, database_name))
    except Exception as e:
        logger.error(
            f"Failed to execute command for tenant {restaurant.name} ({database_name}): {e}"
        )
        return 1

    logger.info("Command completed successfully.")
    return 0


async def provision_tenant(restaurant_id: int) -> int:
    async with multi_tenant_manager.get_central_session_factory()() as session:
        repository = RestaurantRepository(session)
        restaurant = await repository.get_by_id(restaurant_id)
        if restaurant is None:
            logger.error(f"Tenant with ID {restaurant_id} not found.")
            return 1

        provisioner = TenantProvisioner(RestaurantUpdaterService(repository))
        try:
            restaurant = await provisioner.provision(restaurant)
        except ProvisioningException as e:
            logger.error(str(e))
            return 1

    logger.info(f"Tenant {restaurant.name} is ready on {restaurant.database_name}")
    return 0


async def list_tenants() -> int:
    async with multi_tenant_manager.get_central_session_factory()() as session:
        restaurants = await RestaurantRepository(session).get_all()

    if not restaurants:
        print("No tenants found")
        return 0

    for restaurant in restaurants:
        state = "active" if restaurant.active else "inactive"
        if is_placeholder(restaurant.database_name):
            state += ", not provisioned"
        print(
            f"  {restaurant.id:>4}  {restaurant.name} ({restaurant.slug}) "
            f"- {restaurant.database_name} [{state}]"
        )
    return 0


def print_usage():
    """Print usage information"""
    print(
        """
Tenant administration

Usage:
    delivery-tenants <command> [options]

Commands:
    provision-all-tenants [--reset] [--seed]  - Migrate every active tenant database
    run-command-for-tenant <id> "<command>"   - Run an alembic command or "seed" for one tenant
    provision-tenant <id>                     - Resume provisioning of a restaurant
    list                                      - List all tenants
    help                                      - Show this help message

Options:
    --reset                - Drop every table before migrating
    --seed                 - Seed the catalog (only together with --reset)

Examples:
    delivery-tenants provision-all-tenants
    delivery-tenants provision-all-tenants --reset --seed
    delivery-tenants run-command-for-tenant 3 "upgrade head"
    delivery-tenants run-command-for-tenant 3 "downgrade -1"
    delivery-tenants run-command-for-tenant 3 seed
    delivery-tenants provision-tenant 3
    """
    )


def _parse_id(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        logger.error(f"Invalid tenant id: {value}")
        return None


async def main(argv: Optional[List[str]] = None) -> int:
    """Main function"""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print_usage()
        return 0

    command = args[0].lower()
    try:
        if command == "provision-all-tenants":
            options = MigrationOptions(reset="--reset" in args, seed="--seed" in args)
            return await provision_all_tenants(options)

        elif command == "run-command-for-tenant":
            if len(args) < 3:
                logger.error('Usage: run-command-for-tenant <id> "<command>"')
                return 1
            restaurant_id = _parse_id(args[1])
            if restaurant_id is None:
                return 1
            return await run_command_for_tenant(restaurant_id, " ".join(args[2:]))

        elif command == "provision-tenant":
            if len(args) < 2:
                logger.error("Usage: provision-tenant <id>")
                return 1
            restaurant_id = _parse_id(args[1])
            if restaurant_id is None:
                return 1
            return await provision_tenant(restaurant_id)

        elif command == "list":
            return await list_tenants()

        elif command == "help":
            print_usage()
            return 0

        else:
            logger.error(f"Unknown command: {command}")
            print_usage()
            return 1
    finally:
        await multi_tenant_manager.close_all()


def run() -> None:
    init_logging()
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
