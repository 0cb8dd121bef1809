# app/__init__.py
"""
Keep this file minimal so 'app' is always a proper package.

Do NOT import submodules here. Import the factory directly:
    from app.main import create_app
And Uvicorn should use:
    uvicorn app.main:app
"""
