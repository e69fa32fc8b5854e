"""
timebudget Reporting Module

Monthly department/user breakdowns, lifetime budget views, financial
overviews and aggregate time reports.
"""
