"""
HTTP routers. Each module exposes ``router`` for app.include_router().
"""
