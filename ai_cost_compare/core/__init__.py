"""
Core modules for AI Cost Compare.

This package contains the pricing catalog loader, the cost calculator,
the result formatter and the calculator session state machine.
"""
