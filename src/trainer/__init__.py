"""
Trainer - Python client for the AI personal trainer backend.

Packages:
- trainer: config, HTTP/SSE client, backend proxy stores, CLI
- onboarding: phase state machine, persistence and resume, email OTP auth
"""

__version__ = "0.4.0"
