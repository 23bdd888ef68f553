"""
Invoice Workflow.

The forward-only invoice state machine.  InvoiceService asks
``INVOICE_WORKFLOW.allows(action, state)`` before every transition.
"""

from __future__ import annotations

from dataclasses import dataclass

from ledger_kernel.domain.values import InvoiceStatus
from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.invoices.workflows")


@dataclass(frozen=True)
class Transition:
    """A valid state transition."""
    from_state: InvoiceStatus
    to_state: InvoiceStatus
    action: str
    posts_entry: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition."""
    name: str
    description: str
    initial_state: InvoiceStatus
    states: tuple[InvoiceStatus, ...]
    transitions: tuple[Transition, ...]

    def find(self, action: str, state: InvoiceStatus) -> Transition | None:
        for transition in self.transitions:
            if transition.action == action and transition.from_state == state:
                return transition
        return None

    def allows(self, action: str, state: InvoiceStatus) -> bool:
        return self.find(action, state) is not None


INVOICE_WORKFLOW = Workflow(
    name="invoice",
    description="Invoice lifecycle",
    initial_state=InvoiceStatus.DRAFT,
    states=(
        InvoiceStatus.DRAFT,
        InvoiceStatus.VERIFIED,
        InvoiceStatus.POSTED,
        InvoiceStatus.VOIDED,
    ),
    transitions=(
        Transition(InvoiceStatus.DRAFT, InvoiceStatus.VERIFIED, action="verify"),
        Transition(InvoiceStatus.VERIFIED, InvoiceStatus.POSTED, action="post", posts_entry=True),
        Transition(InvoiceStatus.POSTED, InvoiceStatus.VOIDED, action="void", posts_entry=True),
    ),
)

logger.debug(
    "invoice_workflow_registered",
    extra={
        "workflow_name": INVOICE_WORKFLOW.name,
        "state_count": len(INVOICE_WORKFLOW.states),
        "transition_count": len(INVOICE_WORKFLOW.transitions),
    },
)
