"""
Todo API package.

HTTP API for creating, listing, updating and deleting todo items stored in
MongoDB. Build the ASGI app with ``todo_api.main.create_app`` or run the
server with ``python -m todo_api``.
"""

__version__ = "1.0.0"
