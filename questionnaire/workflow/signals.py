"""
Signals for the response session workflow.
See https://docs.djangoproject.com/en/stable/topics/signals/
"""

import django.dispatch

# Sent once a marking pass has committed.
# Receivers get the ``session_id`` of the marked session.
session_marked = django.dispatch.Signal()  # pylint: disable=invalid-name
