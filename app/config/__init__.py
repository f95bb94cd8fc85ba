"""
Project configuration: settings, URLs, ASGI entry point and Celery.

The Celery app is imported here so that shared_task decorators in the
domain apps bind to it as soon as Django loads.
"""

from config.celery import app as celery_app

__all__ = ("celery_app",)
