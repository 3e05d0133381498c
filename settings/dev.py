"""
Dev-specific Django settings.
"""
# Inherit from base settings
from .base import *  # pylint:disable=W0614,W0401

INTERNAL_IPS = ('127.0.0.1',)

LOGGING['handlers'].update({
    'apps_debug': {
        'level': 'DEBUG',
        'class': 'logging.FileHandler',
        'filename': 'logs/apps_debug.log',
        'formatter': 'simple',
    },
    'errors': {
        'level': 'ERROR',
        'class': 'logging.FileHandler',
        'filename': 'logs/errors.log',
        'formatter': 'simple',
    },
})
LOGGING['loggers']['questionnaire'].update({
    'handlers': ['console', 'apps_debug', 'errors'],
    'level': 'DEBUG',
})
