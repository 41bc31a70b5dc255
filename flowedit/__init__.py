"""
FlowEdit - An editor backend for conversational flow graphs.

Import, edit, validate and export dialogue flows: nodes with prompts,
condition-guarded edges, and a single start state.
"""

__version__ = "1.0.0"
