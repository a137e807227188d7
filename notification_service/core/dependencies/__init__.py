"""FastAPI dependencies shared by the feature routers.

Import from the submodules:
    from notification_service.core.dependencies.auth import RequirePermissions
    from notification_service.core.dependencies.services import DispatcherDep, HubDep
"""
