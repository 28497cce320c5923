"""
eRaksha backend package.

Design intent:
- Relay an uploaded call recording through hosted speech-to-text and LLM services.
- Keep provider-specific calls behind small adapters so the API layer stays thin.
"""
