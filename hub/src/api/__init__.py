"""
HTTP API package: FastAPI app and route modules.

CHANGELOG:
- 2026-10-14: Initial creation (STORY-110)
"""
