"""Background task entrypoints.

The HTTP API only *emits* jobs from here; the Celery app and task definitions
live in ``src.worker``.
"""
