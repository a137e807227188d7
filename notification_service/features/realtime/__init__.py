"""Real-time channel feature.

Usage:
    from notification_service.features.realtime import router, ws_router
    app.include_router(router, prefix="/api/v1")
    app.include_router(ws_router)

    # Connect and join a room
    ws://localhost:3000/ws  ->  {"type": "join", "room": "user-42"}
"""

from notification_service.features.realtime.router import router, ws_router

__all__ = ["router", "ws_router"]
