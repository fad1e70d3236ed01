"""Celery application for background notification delivery."""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('pharma_store')

# All CELERY_* keys in Django settings configure the app.
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
