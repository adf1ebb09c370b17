import json
import os
import click
from flask.cli import with_appcontext
from flask import current_app

from accountant.utils import local_now


def register_cli_commands(app):
    """
    Registers custom commands with the Flask CLI under the 'setup' group.
    Called from create_app().
    """

    @app.cli.group()
    def setup():
        """Database setup, seed data and backups."""
        pass

    # --- Database & Setup Commands ---

    @setup.command("init-db")
    @with_appcontext
    def init_db_command():
        """Creates database tables from models."""
        from accountant import db

        db.create_all()
        click.echo("Initialized the database.")

    @setup.command("create-admin")
    @with_appcontext
    def create_admin_command():
        """Creates the admin user from ADMIN_USERNAME / ADMIN_PASSWORD."""
        from accountant.auth.utils import create_admin

        if create_admin():
            click.echo("Admin created successfully.")
        else:
            click.echo("Admin already exists.")

    @setup.command("seed-defaults")
    @with_appcontext
    def seed_defaults_command():
        """Creates the storefront configuration row and the FCFA currency."""
        from accountant import db
        from accountant.models import ensure_default_currency, get_store_configuration

        get_store_configuration()
        ensure_default_currency(current_app.config.get("DEFAULT_CURRENCY", "FCFA"))
        db.session.commit()
        click.echo("Default configuration and currency are in place.")

    # --- Backup Commands ---

    @setup.command("backup")
    @with_appcontext
    @click.option(
        "--output",
        "output_path",
        default=None,
        help="Target JSON file. Defaults to a timestamped file in BACKUP_DIR.",
    )
    def backup_command(output_path):
        """Writes every table to a JSON backup file."""
        from accountant.backup import create_backup

        if output_path is None:
            backup_dir = current_app.config["BACKUP_DIR"]
            os.makedirs(backup_dir, exist_ok=True)
            stamp = local_now().strftime("%Y%m%d-%H%M%S")
            output_path = os.path.join(backup_dir, f"shop-accountant-backup-{stamp}.json")

        document = create_backup()
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2)

        total = sum(len(rows) for rows in document["tables"].values())
        click.echo(f"Backup written to {output_path} ({total} records).")

    @setup.command("restore")
    @with_appcontext
    @click.argument("path", type=click.Path(exists=True, dir_okay=False))
    def restore_command(path):
        """Replaces table contents with those of a JSON backup file."""
        from accountant.backup import restore_backup
        from accountant.exceptions import LedgerError

        with open(path, encoding="utf-8") as f:
            document = json.load(f)
        try:
            result = restore_backup(document)
        except LedgerError as e:
            raise click.ClickException(e.message)

        for table, count in result["restored"].items():
            click.echo(f"  {table}: {count} rows")
        if result["skipped"]:
            click.echo(f"Skipped unknown tables: {', '.join(result['skipped'])}")
        click.echo("Restore complete.")
