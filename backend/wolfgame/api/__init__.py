"""API Layer — FastAPI routes and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses (SSE for /events)

Design Decisions:
    - Thin routes delegate to RoomService
"""
