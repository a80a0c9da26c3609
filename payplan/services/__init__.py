"""
Services Package

External collaborators consumed through narrow interfaces:
- storage: planner payload and audit persistence
- export: calendar export of bill instances
- clock: the injected reference date
"""
