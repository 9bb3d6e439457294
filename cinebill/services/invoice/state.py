"""Per-invoice submission lifecycle."""

from __future__ import annotations

from enum import Enum

from cinebill.core.errors import InvalidTransition


class InvoiceState(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    PERSISTED = "persisted"


_ALLOWED = {
    InvoiceState.DRAFT: {InvoiceState.SUBMITTED},
    InvoiceState.SUBMITTED: {InvoiceState.PERSISTED, InvoiceState.DRAFT},
    InvoiceState.PERSISTED: set(),
}


def can_advance(state: InvoiceState, target: InvoiceState) -> bool:
    return target in _ALLOWED[state]


def advance(state: InvoiceState, target: InvoiceState) -> InvoiceState:
    """Move ``state`` to ``target``; a failed submit returns to DRAFT."""

    if not can_advance(state, target):
        raise InvalidTransition(f"cannot move invoice from {state.value} to {target.value}")
    return target
