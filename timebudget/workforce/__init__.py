"""
timebudget Workforce Module

Departments, users, and department default descriptions.
"""
