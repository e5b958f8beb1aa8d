"""Core reconciliation engine for provctl.

Platform probing, state inspection, backups, retrying execution, the
reconciliation loop and run reporting.
"""
