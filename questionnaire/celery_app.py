"""
Celery application for the marking workers.

Tasks are discovered in the ``tasks`` module of every installed app.
"""
import os

from celery import Celery

# set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'settings.dev')

app = Celery('questionnaire')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
