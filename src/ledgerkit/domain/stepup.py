"""Step-up authorization for large transactions.

``requires_step_up`` is the policy; ``enforce_step_up`` is what the ledger
calls before every write, so a caller cannot skip the check by forgetting
to consult the policy.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Optional

from passlib.context import CryptContext

from ledgerkit.config import Settings, get_settings
from ledgerkit.domain.errors import StepUpRequired, format_money

logger = logging.getLogger(__name__)

password_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class Operation(str, Enum):
    """Ledger operations subject to step-up."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    UNDO = "undo"


class StepUpLevel(IntEnum):
    """Ordered: each level includes the requirements of the ones below it."""

    NONE = 0
    CONFIRM = 1
    REAUTHENTICATE = 2


@dataclass(frozen=True)
class StepUpAuthorization:
    """What the caller has already obtained from the user."""

    confirmed: bool = False
    reauthenticated: bool = False

    @property
    def level(self) -> StepUpLevel:
        if self.confirmed and self.reauthenticated:
            return StepUpLevel.REAUTHENTICATE
        if self.confirmed:
            return StepUpLevel.CONFIRM
        return StepUpLevel.NONE

    def satisfies(self, required: StepUpLevel) -> bool:
        return self.level >= required


NO_AUTHORIZATION = StepUpAuthorization()


def requires_step_up(operation: Operation, amount: Decimal, settings: Optional[Settings] = None) -> StepUpLevel:
    """Decide what the user must do before ``operation`` of ``amount`` runs.

    Amounts above the confirm threshold need explicit confirmation;
    withdrawals above the re-auth threshold additionally need the user's
    credential re-entered.
    """
    settings = settings or get_settings()
    operation = Operation(operation)
    amount = abs(Decimal(amount))

    if operation == Operation.WITHDRAWAL and amount > settings.reauth_threshold:
        return StepUpLevel.REAUTHENTICATE
    if amount > settings.confirm_threshold:
        return StepUpLevel.CONFIRM
    return StepUpLevel.NONE


def enforce_step_up(
    operation: Operation,
    amount: Decimal,
    authorization: Optional[StepUpAuthorization] = None,
    settings: Optional[Settings] = None,
) -> StepUpLevel:
    """Raise ``StepUpRequired`` unless ``authorization`` covers the policy.

    Returns:
        The level the policy required
    """
    required = requires_step_up(operation, amount, settings)
    authorization = authorization or NO_AUTHORIZATION
    if not authorization.satisfies(required):
        operation = Operation(operation)
        if required == StepUpLevel.REAUTHENTICATE:
            message = (
                f"A {operation.value} of {format_money(abs(amount))} requires confirmation "
                "and re-entering your password"
            )
        else:
            message = f"A {operation.value} of {format_money(abs(amount))} requires confirmation"
        raise StepUpRequired(message, level=required, operation=operation.value, amount=amount)
    return required


def hash_password(password: str) -> str:
    """Hash a re-authentication password for the ``reauth_password_hash`` setting."""
    return password_context.hash(password)


class PasswordVerifier:
    """Checks a re-entered credential against the configured password hash."""

    def __init__(self, password_hash: str):
        self._password_hash = password_hash or ""

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PasswordVerifier":
        settings = settings or get_settings()
        return cls(settings.reauth_password_hash)

    def verify(self, credential: str) -> bool:
        # No configured hash means nobody can re-authenticate
        if not self._password_hash or credential is None:
            return False
        try:
            return password_context.verify(credential, self._password_hash)
        except ValueError:
            logger.error("Configured re-authentication hash is not a recognized bcrypt hash")
            return False
