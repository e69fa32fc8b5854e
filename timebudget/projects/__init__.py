"""
timebudget Projects Module

Project registry, budget ledger (one-off injections, recurring
definitions, department splits) and recurring budget projection.
"""

from timebudget.projects.recurring import (
    department_retainer_fee,
    monthly_share,
    project_retainer_fee,
    projected_recurring_budget,
    projects_into_month,
)

__all__ = [
    "department_retainer_fee",
    "monthly_share",
    "project_retainer_fee",
    "projected_recurring_budget",
    "projects_into_month",
]
