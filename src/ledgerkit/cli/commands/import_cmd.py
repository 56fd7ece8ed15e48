"""Bulk import commands."""

from pathlib import Path

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.cli.step_up import initial_authorization, prompt_for_step_up
from ledgerkit.domain.bulk_import import BulkImportService, template_csv
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.stepup import StepUpLevel


@click.command("import")
@click.argument("file", type=click.Path(exists=True))
@click.option("--default-account", type=int, help="Account ID for rows that don't name one")
@click.option("--yes", "-y", is_flag=True, help="Confirm large transactions without prompting")
@click.option("--password", help="Password for re-authentication if any row needs it")
@click.pass_context
def import_file(ctx, file: str, default_account: int | None, yes: bool, password: str | None):
    """Import transactions from a CSV, JSON or TXT file.

    Every row is validated first; if any row is invalid nothing is
    imported. Valid batches are then posted row by row.

    Examples:
        ledgerkit import transactions.csv
        ledgerkit import transactions.json --default-account 1
    """
    service = BulkImportService(ctx.obj["db"])

    try:
        report = service.validate(service.parse_file(file), default_account_id=default_account)
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
        return

    if not report.is_valid:
        result = report.result()
        click.echo(f"Error: {result.message}", err=True)
        for error in result.errors:
            click.echo(f"  {error}", err=True)
        ctx.exit(1)
        return

    authorization = initial_authorization(ctx, yes=yes, password=password)
    level = service.required_step_up(report)
    if level > StepUpLevel.NONE and not authorization.satisfies(level):
        needed = "re-authentication" if level == StepUpLevel.REAUTHENTICATE else "confirmation"
        message = f"This import contains transactions that require {needed}"
        authorization = prompt_for_step_up(ctx, level, message, authorization)
        if authorization is None:
            click.echo("Import cancelled.")
            return

    try:
        with click.progressbar(length=len(report.rows), label="Importing transactions") as bar:
            commit = service.commit(
                report,
                on_progress=lambda current, total: bar.update(1),
                authorization=authorization,
            )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    result = commit.result()
    click.echo(f"\n{result.message}")
    if result.errors:
        for error in result.errors:
            click.echo(f"  {error}", err=True)
        ctx.exit(1)


@click.command("import-template")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the template to this file")
def import_template(output: str | None):
    """Print (or save) a CSV template for bulk import."""
    content = template_csv()
    if output is None:
        click.echo(content, nl=False)
        return
    Path(output).write_text(content, encoding="utf-8")
    click.echo(f"Template written to {output}")


def register_commands(cli):
    """Register import commands with main CLI."""
    cli.add_command(import_file)
    cli.add_command(import_template)
