"""v1 router package — all /api/v1/* endpoints live here.

Files:
  public_contracts.py  — token-authenticated reviewer and signer links
  contracts.py         — admin contract CRUD and lifecycle actions

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to gigsign/services/.
"""
