"""
Pizza Order Demo Flow.

A small, valid conversational flow registered at startup so the editor has
something to open:
1. Greet the caller
2. Take the order
3. Ask for the delivery address (delivery orders only)
4. Confirm, looping back to the order on "no"
5. Say goodbye
"""

import logging

from flowedit.flow.editor import EditorState
from flowedit.flow.models import Edge, FlowDocument, Node
from flowedit.storage.memory import session_storage


logger = logging.getLogger(__name__)

DEMO_SESSION_ID = "demo-flow"


def create_order_flow() -> FlowDocument:
    """Build the demo order-taking flow document."""
    return FlowDocument(
        start_node_id="greeting",
        nodes=[
            Node(
                id="greeting",
                description="Welcome the caller",
                prompt="Hi! Thanks for calling Mario's Pizza. What can I get for you?",
                edges=[
                    Edge(to_node_id="take_order", condition="user wants to order"),
                ],
            ),
            Node(
                id="take_order",
                description="Collect pizza choice and size",
                prompt="Which pizza would you like, and in what size?",
                edges=[
                    Edge(
                        to_node_id="delivery_address",
                        condition="order is for delivery",
                        parameters={"slot": "fulfillment", "value": "delivery"},
                    ),
                    Edge(
                        to_node_id="confirm_order",
                        condition="order is for pickup",
                        parameters={"slot": "fulfillment", "value": "pickup"},
                    ),
                ],
            ),
            Node(
                id="delivery_address",
                description="Collect the delivery address",
                prompt="Where should we deliver it?",
                edges=[
                    Edge(to_node_id="confirm_order", condition="address provided"),
                ],
            ),
            Node(
                id="confirm_order",
                description="Read the order back to the caller",
                prompt="Let me read that back to you. Is everything correct?",
                edges=[
                    Edge(to_node_id="goodbye", condition="user confirms"),
                    Edge(to_node_id="take_order", condition="user wants changes"),
                ],
            ),
            Node(
                id="goodbye",
                description="End the call",
                prompt="Great, your order is on its way. Goodbye!",
            ),
        ],
    )


async def register_order_flow() -> None:
    """Open the demo flow as a session."""
    await session_storage.create(
        session_id=DEMO_SESSION_ID,
        name="Pizza Order Demo",
        state=EditorState.from_document(create_order_flow()),
    )
    logger.info(f"Registered demo flow: {DEMO_SESSION_ID}")
