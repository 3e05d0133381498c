"""
Celery tasks that mark response sessions in the background.
"""

from uuid import uuid4

from celery import shared_task
from celery.utils.log import get_task_logger
from django.conf import settings
from django.core.cache import cache
from django.utils.timezone import now

from questionnaire.workflow.errors import InvalidSessionTransition, ResponseSessionNotFound

logger = get_task_logger(__name__)

MAX_RETRIES = getattr(settings, 'QUESTIONNAIRE_MARKING_MAX_RETRIES', 3)

BULK_MARKING_CACHE_TIMEOUT = getattr(settings, 'QUESTIONNAIRE_BULK_MARKING_CACHE_TIMEOUT', 60 * 60)

BULK_MARKING_CACHE_KEY = 'questionnaire.marking.bulk.{}'


@shared_task(bind=True,
             acks_late=True,
             autoretry_for=(Exception,),
             max_retries=MAX_RETRIES,
             retry_backoff=True,
             retry_backoff_max=600,
             retry_jitter=True)
# pylint: disable=unused-argument
def mark_session_task(self, session_id, marking_scheme_id=None, remark=False):
    """
    Mark one session.

    The task is dropped without a retry when the session no longer exists or
    cannot be marked; any other error is retried with exponential backoff.

    Returns:
        dict: The marking result, or None if the task was dropped.

    """
    from questionnaire.marking.grading import mark_session

    try:
        result = mark_session(session_id, marking_scheme_id=marking_scheme_id, remark=remark)
    except ResponseSessionNotFound:
        logger.warning("Marking task dropped: session %s does not exist", session_id)
        return None
    except InvalidSessionTransition as ex:
        logger.warning("Marking task dropped: session %s cannot be marked (state: %s)", session_id, ex.current_state)
        return None

    return {
        'session_id': result.session_id,
        'total_score': str(result.total_score),
        'max_possible_score': str(result.max_possible_score),
        'percentage': str(result.percentage),
        'grade': result.grade,
    }


@shared_task(bind=True,
             acks_late=True,
             autoretry_for=(Exception,),
             max_retries=1,
             retry_backoff=True,
             retry_jitter=True)
# pylint: disable=unused-argument
def bulk_mark_sessions_task(self, session_ids, marking_scheme_id=None):
    """
    Queue one marking task per session without waiting for any of them.

    A summary of the queued and failed sessions is kept in the cache under the
    returned ``cache_key``.
    """
    successful, failed, errors = 0, 0, []
    for processed, session_id in enumerate(session_ids, start=1):
        try:
            mark_session_task.apply_async(args=(session_id,), kwargs={'marking_scheme_id': marking_scheme_id})
            successful += 1
        except Exception as ex:  # pylint: disable=broad-except
            failed += 1
            errors.append("Session {}: {}".format(session_id, ex))
            logger.exception("Could not queue the marking task for session %s", session_id)

        if processed % 10 == 0:
            logger.info("Bulk marking progress: %s/%s sessions queued", processed, len(session_ids))

    summary = {
        'cache_key': BULK_MARKING_CACHE_KEY.format(uuid4().hex),
        'total': len(session_ids),
        'successful': successful,
        'failed': failed,
        'errors': errors,
        'completed_at': now().isoformat(),
    }
    cache.set(summary['cache_key'], summary, BULK_MARKING_CACHE_TIMEOUT)

    if failed:
        logger.error("Bulk marking had %s failures: %s", failed, ", ".join(errors))
    else:
        logger.info("Bulk marking queued %s sessions", successful)
    return summary
