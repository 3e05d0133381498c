"""
Questionnaire authoring, conditional visibility and automated marking.
"""

from .celery_app import app as celery_app

__version__ = '1.4.0'

__all__ = ('celery_app',)
