"""E-mail and push dispatch.

Usage:
    from notification_service.features.notifications.router import router
    app.include_router(router, prefix="/api/v1")
"""
