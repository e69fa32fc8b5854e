"""
timebudget - Timesheet & Project Budget Tracker

Time logging against projects with monthly budget reporting.

Modules:
    core        - Shared services (db, config, logging, errors, output)
    workforce   - Departments, users, default descriptions
    projects    - Projects, budget ledger, recurring budget projection
    timetracker - Time entries, cost calculation, monthly cost summaries
    reporting   - Monthly breakdowns, lifetime views, aggregate reports
"""

__version__ = "0.1.0"
