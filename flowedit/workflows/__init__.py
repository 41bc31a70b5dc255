"""
Workflows package - Sample flows shipped with the editor.
"""

from flowedit.workflows.order_flow import create_order_flow, register_order_flow

__all__ = ["create_order_flow", "register_order_flow"]
