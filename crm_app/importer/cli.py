"""
CLI commands for importing contacts from CSV files.

The CSV header row must use the same field names as the bulk-create API
(``email``, ``firstName``, ``tags`` ...). Rows run through the same
coordinator as HTTP imports.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path

import click
from flask import current_app
from flask.cli import AppGroup

from crm_app.importer.pipeline import ImportReport, import_contacts
from crm_app.models import Organization

contacts_cli = AppGroup("contacts", help="Contact import commands.")


def read_contact_rows(csv_path: Path) -> list[dict[str, str]]:
    """Read a CSV file into raw contact records, dropping blank cells."""
    with csv_path.open("r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise click.ClickException(f"CSV file {csv_path} has no header row.")
        rows = []
        for raw in reader:
            record = {
                key.strip(): value.strip()
                for key, value in raw.items()
                if key and isinstance(value, str) and value.strip()
            }
            if record:
                rows.append(record)
        return rows


def _format_summary(report: ImportReport, organization_id: str) -> str:
    return (
        f"Contact import for {organization_id} finished with status {report.status.value}.\n"
        f"  inserted          : {report.success_count}\n"
        f"  validation_errors : {report.validation_error_count}\n"
        f"  duplicates_skipped: {report.duplicate_skip_count}\n"
        f"  database_errors   : {len(report.database_errors)}"
    )


@contacts_cli.command("import")
@click.option(
    "--file",
    "file_path",
    required=True,
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="Path to the CSV file to import.",
)
@click.option("--organization", "organization_id", help="Owning organization id (defaults to the placeholder tenant).")
@click.option("--tag", "tags", multiple=True, help="Tag applied to every imported contact; repeatable.")
@click.option("--summary-json", is_flag=True, help="Emit the full import report as JSON after completion.")
def import_contacts_command(file_path: Path, organization_id: str | None, tags: tuple[str, ...], summary_json: bool):
    """Import contacts from a CSV file."""
    organization_id = organization_id or current_app.config["IMPORTER_PLACEHOLDER_ORG_ID"]
    rows = read_contact_rows(file_path)
    if not rows:
        raise click.ClickException(f"No contact rows found in {file_path}.")

    if Organization.find_by_id(organization_id) is None:
        raise click.ClickException(f"Unknown organization: {organization_id}")

    max_contacts = current_app.config.get("IMPORTER_MAX_CONTACTS")
    if max_contacts and len(rows) > max_contacts:
        raise click.ClickException(f"CSV contains {len(rows)} rows; the limit is {max_contacts}.")

    current_app.logger.info("Contact import started via CLI from %s (%s rows)", file_path, len(rows))
    report = import_contacts(rows, tags, organization_id=organization_id, source="cli")

    click.echo(_format_summary(report, organization_id))
    if summary_json:
        click.echo(json.dumps(report.to_dict(), indent=2, sort_keys=True))
    if report.database_errors:
        raise click.ClickException(f"{len(report.database_errors)} contacts failed to store.")


@contacts_cli.command("ensure-organization")
@click.option("--organization", "organization_id", help="Organization id to create (defaults to the placeholder tenant).")
@click.option("--name", help="Display name for a newly created organization.")
def ensure_organization_command(organization_id: str | None, name: str | None):
    """Create the tenant that imports default to, if it does not exist yet."""
    organization_id = organization_id or current_app.config["IMPORTER_PLACEHOLDER_ORG_ID"]
    organization = Organization.ensure_exists(organization_id, name=name)
    if organization is None:
        raise click.ClickException(f"Could not create organization {organization_id}.")
    click.echo(f"Organization {organization.id} ({organization.name}) is ready.")
