"""Services package — all business logic lives here, never in routers.

Files:
  state_machine.py  — lifecycle transition table and payload guards
  tokens.py         — bearer token issuance and hashing
  audit.py          — hash-chained audit trail
  token_flow.py     — shared resolve/expire plumbing for public links
  review_flow.py    — reviewer view + approve
  sign_flow.py      — signer view + sign
  contracts.py      — admin create/edit/send/cancel/delete/download
  documents.py      — document digests and PDF rendering (PyMuPDF)
  notifications.py  — outbound email (log backend or Resend via httpx)

Rule: routers call services, services call repositories, repositories call the DB.
      No SQLAlchemy queries in routers. No FastAPI imports in services.
"""
