"""Account management commands."""

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.errors import DomainError, format_money


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("open")
@click.argument("owner_id")
@click.argument("account_type")
@click.argument("account_number")
@click.argument("routing_number")
@click.pass_context
def open_account(ctx, owner_id: str, account_type: str, account_number: str, routing_number: str):
    """Open a new account with a zero balance.

    Examples:
        ledgerkit account open user-1 checking 000123456789 021000021
    """
    service = AccountService(ctx.obj["db"])
    try:
        account_id = service.open_account(
            owner_id=owner_id,
            account_type=account_type,
            account_number=account_number,
            routing_number=routing_number,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Opened {account_type.lower()} account ****{account_number[-4:]} (ID: {account_id})")


@account_group.command("list")
@click.option("--owner", help="Only show accounts of this owner")
@click.pass_context
def list_accounts(ctx, owner: str | None):
    """List accounts with masked numbers and the total balance."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(owner_id=owner)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        status = "frozen" if acc.is_frozen else "active"
        click.echo(
            f"ID: {acc.id:3d} | {acc.account_type:10s} | {acc.masked_number} | "
            f"{format_money(acc.balance):>14s} | {status}"
        )

    summary = service.summarize(owner_id=owner)
    click.echo("-" * 70)
    click.echo(f"Total balance: {format_money(summary.total_balance)}")
    click.echo(f"Active accounts: {summary.active_count}, frozen: {summary.frozen_count}")


@account_group.command("show")
@click.argument("account_id", type=int)
@click.pass_context
def show_account(ctx, account_id: int):
    """Show account details."""
    service = AccountService(ctx.obj["db"])
    try:
        acc = service.require_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Account {acc.id}")
    click.echo(f"  Owner:   {acc.owner_id}")
    click.echo(f"  Type:    {acc.account_type}")
    click.echo(f"  Number:  {acc.masked_number}")
    click.echo(f"  Routing: {acc.routing_number}")
    click.echo(f"  Balance: {format_money(acc.balance)}")
    click.echo(f"  Status:  {'frozen' if acc.is_frozen else 'active'}")


@account_group.command("freeze")
@click.argument("account_id", type=int)
@click.pass_context
def freeze_account(ctx, account_id: int):
    """Freeze an account, blocking all postings to it."""
    service = AccountService(ctx.obj["db"])
    try:
        acc = service.freeze(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Account {acc.masked_number} frozen")


@account_group.command("unfreeze")
@click.argument("account_id", type=int)
@click.pass_context
def unfreeze_account(ctx, account_id: int):
    """Unfreeze an account."""
    service = AccountService(ctx.obj["db"])
    try:
        acc = service.unfreeze(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Account {acc.masked_number} unfrozen")


@account_group.command("notifications")
@click.argument("owner_id")
@click.pass_context
def list_notifications(ctx, owner_id: str):
    """Show an owner's notifications, newest first."""
    notifications = ctx.obj["db"].list_notifications(owner_id)
    if not notifications:
        click.echo("No notifications.")
        return
    for notification in notifications:
        click.echo(f"[{notification.created_at:%Y-%m-%d %H:%M}] {notification.title}")
        click.echo(f"    {notification.message}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
