"""
Purchasing Workflows.

State machine for the purchase order lifecycle.  ``POStateMachine`` refuses
any (status, action) pair that is not declared here.
"""

from supply_kernel.domain.workflow import Guard, Transition, Workflow
from supply_kernel.logging_config import get_logger

logger = get_logger("modules.purchasing.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

AT_OR_ABOVE_THRESHOLD = Guard(
    name="at_or_above_threshold",
    description="PO total is at or above the approval threshold",
)

BELOW_THRESHOLD = Guard(
    name="below_threshold",
    description="PO total is below the approval threshold (auto-approval)",
)

ACTOR_SUPPLIED = Guard(
    name="actor_supplied",
    description="An approver identity was supplied",
)

ALL_LINES_RECEIVED = Guard(
    name="all_lines_received",
    description="Every line's received quantity is at least its ordered quantity",
)

LINES_OUTSTANDING = Guard(
    name="lines_outstanding",
    description="At least one line is still short of its ordered quantity",
)

logger.info(
    "purchasing_workflow_guards_defined",
    extra={
        "guards": [
            AT_OR_ABOVE_THRESHOLD.name,
            BELOW_THRESHOLD.name,
            ACTOR_SUPPLIED.name,
            ALL_LINES_RECEIVED.name,
            LINES_OUTSTANDING.name,
        ],
    },
)


# -----------------------------------------------------------------------------
# Purchase Order Workflow
# -----------------------------------------------------------------------------

PURCHASE_ORDER_WORKFLOW = Workflow(
    name="purchase_order",
    description="Purchase order lifecycle",
    initial_state="draft",
    states=(
        "draft",
        "pending_approval",
        "approved",
        "sent",
        "partially_received",
        "closed",
        "cancelled",
    ),
    transitions=(
        Transition("draft", "draft", action="edit", event_type="updated"),
        Transition("draft", "pending_approval", action="submit", guard=AT_OR_ABOVE_THRESHOLD, event_type="submitted"),
        Transition("draft", "approved", action="submit", guard=BELOW_THRESHOLD, event_type="submitted"),
        Transition("pending_approval", "approved", action="approve", guard=ACTOR_SUPPLIED, event_type="approved"),
        Transition("pending_approval", "draft", action="reject", event_type="rejected"),
        Transition("approved", "sent", action="send", event_type="sent"),
        Transition("sent", "sent", action="record_shipment", event_type="shipment_created"),
        Transition("partially_received", "partially_received", action="record_shipment", event_type="shipment_created"),
        Transition("sent", "partially_received", action="receive", guard=LINES_OUTSTANDING, event_type="receipt_recorded"),
        Transition("sent", "closed", action="receive", guard=ALL_LINES_RECEIVED, event_type="closed"),
        Transition("partially_received", "partially_received", action="receive", guard=LINES_OUTSTANDING, event_type="receipt_recorded"),
        Transition("partially_received", "closed", action="receive", guard=ALL_LINES_RECEIVED, event_type="closed"),
        Transition("draft", "cancelled", action="cancel", event_type="cancelled"),
        Transition("pending_approval", "cancelled", action="cancel", event_type="cancelled"),
        Transition("approved", "cancelled", action="cancel", event_type="cancelled"),
        Transition("sent", "cancelled", action="cancel", event_type="cancelled"),
    ),
    terminal_states=("closed", "cancelled"),
)

logger.info(
    "purchasing_po_workflow_registered",
    extra={
        "workflow_name": PURCHASE_ORDER_WORKFLOW.name,
        "state_count": len(PURCHASE_ORDER_WORKFLOW.states),
        "transition_count": len(PURCHASE_ORDER_WORKFLOW.transitions),
        "initial_state": PURCHASE_ORDER_WORKFLOW.initial_state,
    },
)
