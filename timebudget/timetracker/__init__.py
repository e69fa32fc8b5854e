"""
timebudget Time Tracker Module

Time entries with rate snapshots, cost calculation, week bucketing,
and monthly cost summaries.
"""
