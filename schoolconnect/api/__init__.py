"""
API module - FastAPI routers and endpoint definitions.

Usage:
    from schoolconnect.api.routes import api_router
    app.include_router(api_router, prefix="/api")
"""
