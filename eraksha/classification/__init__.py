"""
Scam classification boundary for eRaksha backend.

Design intent:
- Send transcripts to the hosted LLM with a fixed JSON-only instruction.
- Normalize loosely-typed model replies into a strict verdict contract.
- Fail closed: a verdict that cannot be trusted is an error, not a default.
"""
