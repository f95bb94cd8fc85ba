"""
Celery configuration for the Django application.

Celery runs the work that must never block a webhook or portal request:
- Post-renewal side effects (provider credit sync, WhatsApp confirmation)
- Periodic recovery of fulfillments stuck in "processing"

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps.

Usage:
    from payments.tasks import send_renewal_confirmation

    send_renewal_confirmation.delay(str(record.id))

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings should be prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Celery will look for a tasks.py module in each installed app
app.autodiscover_tasks()
