"""
Domain packages. Each one exposes its FastAPI router along with
schemas and a service layer, and a repository where it persists data.
"""
