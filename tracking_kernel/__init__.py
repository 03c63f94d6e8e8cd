"""
Tracking Kernel

Read-only reporting over departments, employees and project assignments:
- High-activity employee detection over a trailing deadline window
- Flattened assignment listing
- Bonus computation through a server-side routine
- Department payroll totals from two independent paths, cross-checked
"""

__version__ = "0.1.0"
