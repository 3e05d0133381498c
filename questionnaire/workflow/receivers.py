"""
Signal receivers of the response session workflow.
"""

import logging

from django.dispatch import receiver

from .models import ResponseSession
from .signals import session_marked
from .tasks import send_marking_notification_task

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name


@receiver(session_marked)
def queue_marking_notification(sender, **kwargs):  # pylint: disable=unused-argument
    """
    Queue the marking notification of a session whose user has an email address.

    Keyword Arguments:
        session_id (int): The session that has been marked.

    """
    session_id = kwargs.get('session_id')
    if session_id is None:
        logger.error("Session marked signal sent without a session id")
        return

    email = ResponseSession.objects.filter(pk=session_id).values_list('user__email', flat=True).first()
    if not email:
        return

    try:
        send_marking_notification_task.apply_async(args=(session_id,))
    except Exception:  # pylint: disable=broad-except
        logger.exception("Failed to queue the marking notification for session %s", session_id)
