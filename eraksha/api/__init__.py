"""
API orchestration boundary for eRaksha backend.

Design intent:
- Expose a single upload endpoint with a stable `{success, ...}` envelope.
- Validate uploads before any provider call is made.
- Map adapter failures to predictable HTTP status codes.
"""
