"""CLI helpers for step-up prompts (confirmation and password re-entry)."""

from typing import Callable, TypeVar

import click

from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.errors import DomainError, StepUpRequired
from ledgerkit.domain.stepup import PasswordVerifier, StepUpAuthorization, StepUpLevel

T = TypeVar("T")


def initial_authorization(ctx, *, yes: bool, password: str | None) -> StepUpAuthorization:
    """Authorization granted up front by --yes / --password."""
    reauthenticated = False
    if password is not None:
        if not PasswordVerifier.from_settings().verify(password):
            click.echo("Error: Re-authentication failed", err=True)
            ctx.exit(1)
        reauthenticated = True
    return StepUpAuthorization(confirmed=yes, reauthenticated=reauthenticated)


def prompt_for_step_up(
    ctx,
    level: StepUpLevel,
    message: str,
    authorization: StepUpAuthorization,
) -> StepUpAuthorization | None:
    """Ask the user for whatever ``level`` needs beyond ``authorization``.

    Returns:
        The widened authorization, or None if the user declined
    """
    confirmed = authorization.confirmed
    if not confirmed:
        confirmed = click.confirm(f"{message}. Continue?", default=False)
        if not confirmed:
            return None

    reauthenticated = authorization.reauthenticated
    if level >= StepUpLevel.REAUTHENTICATE and not reauthenticated:
        credential = click.prompt("Password", hide_input=True)
        if not PasswordVerifier.from_settings().verify(credential):
            click.echo("Error: Re-authentication failed", err=True)
            ctx.exit(1)
        reauthenticated = True

    return StepUpAuthorization(confirmed=confirmed, reauthenticated=reauthenticated)


def run_with_step_up(
    ctx,
    action: Callable[[StepUpAuthorization], T],
    *,
    yes: bool = False,
    password: str | None = None,
) -> T | None:
    """Run a ledger action, prompting and retrying once if it needs step-up.

    Returns:
        The action's result, or None if the user cancelled
    """
    authorization = initial_authorization(ctx, yes=yes, password=password)
    try:
        try:
            return action(authorization)
        except StepUpRequired as e:
            authorization = prompt_for_step_up(ctx, e.level, e.message, authorization)
            if authorization is None:
                click.echo("Cancelled.")
                return None
            return action(authorization)
    except DomainError as e:
        handle_domain_error(ctx, e)
