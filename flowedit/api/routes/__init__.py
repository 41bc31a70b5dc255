"""
Route modules for the flow and session endpoints.
"""
