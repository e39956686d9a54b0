"""Pydantic schemas package.

Folder intent:
  common.py    — ApiModel base + HealthResponse (all schemas inherit ApiModel)
  contract.py  — Admin contract DTOs, audit views, public projection and action responses
"""
