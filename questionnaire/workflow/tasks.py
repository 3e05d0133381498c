"""
Celery tasks for the response session workflow.
"""

from celery import shared_task
from celery.utils.log import get_task_logger
from django.utils.timezone import now

logger = get_task_logger(__name__)


@shared_task(bind=True,
             acks_late=True,
             autoretry_for=(Exception,),
             max_retries=2,
             retry_backoff=True,
             retry_backoff_max=300,
             retry_jitter=True)
# pylint: disable=unused-argument
def send_marking_notification_task(self, session_id):
    """
    Tell the respondent their session has been marked.

    The outcome is recorded in the session's metadata.  Sessions that no
    longer exist, are not marked or have no email address are skipped.
    """
    from questionnaire.workflow.models import ResponseSession
    from questionnaire.workflow.notifications import get_marking_notifier

    try:
        session = ResponseSession.objects.select_related('user', 'assessment').get(pk=session_id)
    except ResponseSession.DoesNotExist:
        logger.warning("Notification task dropped: session %s does not exist", session_id)
        return False

    email = session.user.email
    if session.state != ResponseSession.STATES.marked or not email:
        logger.warning("Notification task dropped: session %s is not marked or has no email", session_id)
        return False

    logger.info("Sending the marking notification for session %s", session_id)
    try:
        get_marking_notifier()(session)
    except Exception as ex:
        logger.exception("Failed to send the marking notification for session %s", session_id)
        session.update_metadata(notification_error=str(ex), notification_failed_at=now().isoformat())
        raise

    session.update_metadata(notification_sent_at=now().isoformat(), notification_email=email)
    return True
