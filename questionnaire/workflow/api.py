"""
Public interface for response sessions.

Callers identify sessions by id and get plain dicts back; models never leave
this module.
"""

import logging

from django.db import DatabaseError, transaction

from questionnaire.assessment.models import Assessment, AssessmentQuestion
from questionnaire.assessment.question_types import CHOICE_TYPES, SINGLE_CHOICE_TYPES
from questionnaire.assessment.values import coerce_option_ids, encode_response, normalize_response
from questionnaire.marking.grading import mark_session
from questionnaire.marking.serializers import ResponseScoreSerializer
from questionnaire.marking.tasks import bulk_mark_sessions_task, mark_session_task

from .errors import (
    ResponseSessionInternalError, ResponseSessionNotFound, ResponseSessionRequestError
)
from .models import QuestionResponse, ResponseSession, SelectedOption
from .serializers import QuestionResponseSerializer, ResponseSessionSerializer

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name


def _get_session(session_id):
    try:
        return ResponseSession.objects.select_related('assessment', 'user').get(pk=session_id)
    except ResponseSession.DoesNotExist as ex:
        raise ResponseSessionNotFound("Response session {} does not exist".format(session_id)) from ex
    except DatabaseError as ex:
        msg = "Error retrieving response session {}".format(session_id)
        logger.exception(msg)
        raise ResponseSessionInternalError(msg) from ex


def create_session(user, assessment_id, respondent_name='', country_code=''):
    """Return the user's session for an assessment, creating it in ``draft``.

    Args:
        user (User): The respondent.
        assessment_id (int): The assessment being answered.

    Keyword Arguments:
        respondent_name (str): The name used in feedback.
        country_code (str): The respondent's country, used for country
            restrictions.

    Returns:
        dict: The serialized session.

    Raises:
        ResponseSessionRequestError: The assessment does not exist, is not
            active or is not available in the respondent's country.
        ResponseSessionInternalError: Unexpected database error.

    """
    assessment = Assessment.objects.filter(pk=assessment_id, active=True).first()
    if assessment is None:
        raise ResponseSessionRequestError("Assessment {} does not exist or is not active".format(assessment_id))
    if not assessment.accessible_to_country(country_code):
        raise ResponseSessionRequestError(
            "Assessment {} is not available in country {}".format(assessment_id, country_code)
        )

    try:
        session, created = ResponseSession.objects.get_or_create(
            user=user,
            assessment=assessment,
            defaults={
                'respondent_name': respondent_name or user.get_full_name(),
                'country_code': (country_code or '').upper(),
            },
        )
    except DatabaseError as ex:
        msg = "Could not create a response session for assessment {}".format(assessment_id)
        logger.exception(msg)
        raise ResponseSessionInternalError(msg) from ex

    if created:
        logger.info("Created response session %s for assessment %s", session.pk, assessment_id)
    return ResponseSessionSerializer(session).data


def get_session(session_id):
    """
    Return the serialized session.

    Raises:
        ResponseSessionNotFound
        ResponseSessionInternalError

    """
    return ResponseSessionSerializer(_get_session(session_id)).data


def start_session(session_id):
    """
    Move a ``draft`` session to ``started``.

    Raises:
        ResponseSessionNotFound
        InvalidSessionTransition: The session is not a draft.

    """
    session = _get_session(session_id)
    session.start()
    return ResponseSessionSerializer(session).data


@transaction.atomic
def record_response(session_id, question_id, value=None, selected_option_ids=None):
    """Save the answer to one question, replacing any earlier answer.

    Args:
        session_id (int): The session being answered.
        question_id (int): The question answered.

    Keyword Arguments:
        value (dict): The answer in the stored shape of the question type.
        selected_option_ids (list): The selected options of a choice question.

    Returns:
        dict: The serialized response.

    Raises:
        ResponseSessionNotFound
        ResponseSessionRequestError: The session is closed, or the question
            or options do not belong to it.
        ResponseSessionInternalError: Unexpected database error.

    """
    session = _get_session(session_id)
    if not session.accepts_responses:
        raise ResponseSessionRequestError(
            "Session {} no longer accepts responses (state: {})".format(session.pk, session.state)
        )

    try:
        question = AssessmentQuestion.objects.select_related('section').prefetch_related('options').get(
            pk=question_id, section__assessment_id=session.assessment_id
        )
    except AssessmentQuestion.DoesNotExist as ex:
        raise ResponseSessionRequestError(
            "Question {} is not part of assessment {}".format(question_id, session.assessment_id)
        ) from ex

    option_ids = ()
    if question.question_type in CHOICE_TYPES:
        if selected_option_ids is None and isinstance(value, dict):
            selected_option_ids = value.get('selected_option_ids')
        option_ids = coerce_option_ids(selected_option_ids)
        unknown = set(option_ids) - {option.pk for option in question.options.all()}
        if unknown:
            raise ResponseSessionRequestError(
                "Options {} do not belong to question {}".format(sorted(unknown), question.pk)
            )
        if question.question_type in SINGLE_CHOICE_TYPES and len(option_ids) > 1:
            raise ResponseSessionRequestError("Question {} accepts a single option".format(question.pk))

    normalized = normalize_response(
        question.question_type, value, selected_option_ids=option_ids, option_texts=question.option_texts()
    )

    try:
        response, _ = QuestionResponse.objects.update_or_create(
            session=session, question=question, defaults={'value': encode_response(normalized)}
        )
        response.selected_options.all().delete()
        SelectedOption.objects.bulk_create([
            SelectedOption(response=response, option_id=option_id) for option_id in option_ids
        ])
    except DatabaseError as ex:
        msg = "Could not save the response to question {} in session {}".format(question_id, session_id)
        logger.exception(msg)
        raise ResponseSessionInternalError(msg) from ex

    return QuestionResponseSerializer(response).data


def _queue_marking_on_commit(session_id):
    transaction.on_commit(lambda: mark_in_background(session_id))


def submit_session(session_id, queue_marking=True):
    """
    Submit a started session and, by default, queue it for marking.

    Raises:
        ResponseSessionNotFound
        InvalidSessionTransition: The session is not ``started``.
        IncompleteSessionError: Required, visible questions are unanswered.

    """
    session = _get_session(session_id)
    with transaction.atomic():
        session.submit()
        if queue_marking:
            _queue_marking_on_commit(session.pk)
    return ResponseSessionSerializer(session).data


def complete_session(session_id, queue_marking=True):
    """
    Complete a started session and, by default, queue it for marking.

    Raises:
        ResponseSessionNotFound
        InvalidSessionTransition: The session is not ``started``.
        IncompleteSessionError: Required, visible questions are unanswered.

    """
    session = _get_session(session_id)
    with transaction.atomic():
        session.complete()
        if queue_marking:
            _queue_marking_on_commit(session.pk)
    return ResponseSessionSerializer(session).data


def visible_sections(session_id):
    """
    The sections the session can see, in document order.

    Returns:
        list of dict with keys ``id`` and ``name``.

    """
    visibility = _get_session(session_id).visibility()
    return [{'id': section.pk, 'name': section.name} for section in visibility.visible_sections()]


def visible_questions(session_id):
    """
    The questions the session can see, in document order.

    Returns:
        list of dict with keys ``id``, ``section_id``, ``text``,
        ``question_type``, ``sub_type`` and ``is_required``.

    """
    visibility = _get_session(session_id).visibility()
    return [
        {
            'id': question.pk,
            'section_id': question.section_id,
            'text': question.text,
            'question_type': question.question_type,
            'sub_type': question.sub_type,
            'is_required': question.is_required,
        }
        for question in visibility.visible_questions()
    ]


def session_progress(session_id):
    """
    Completion statistics over the visible questions of a session.
    """
    return _get_session(session_id).visibility().completion_stats()


def mark_in_background(session_id, marking_scheme_id=None, remark=False):
    """
    Queue a marking task for the session if it can be marked.

    Returns:
        bool: True if a task was queued.

    """
    session = _get_session(session_id)
    if not session.can_be_marked(remark=remark):
        logger.warning("Not queueing marking for session %s in state '%s'", session.pk, session.state)
        return False
    mark_session_task.apply_async(
        args=(session.pk,), kwargs={'marking_scheme_id': marking_scheme_id, 'remark': remark}
    )
    logger.info("Queued marking for session %s", session.pk)
    return True


def mark_synchronously(session_id, marking_scheme_id=None, remark=False):
    """
    Mark the session now.

    Returns:
        dict: The marking result.

    Raises:
        ResponseSessionNotFound
        InvalidSessionTransition: The session cannot be marked.
        MarkingConfigurationError: No usable marking scheme.

    """
    return mark_session(session_id, marking_scheme_id=marking_scheme_id, remark=remark)._asdict()


def bulk_mark(session_ids, marking_scheme_id=None):
    """
    Queue a task that queues one marking task per session.

    Returns:
        str: The id of the bulk task.

    """
    session_ids = list(session_ids)
    result = bulk_mark_sessions_task.apply_async(args=(session_ids,), kwargs={'marking_scheme_id': marking_scheme_id})
    logger.info("Queued bulk marking of %s sessions", len(session_ids))
    return result.id


def get_scores(session_id):
    """
    The score rows of a session, grouped by question in document order.
    """
    session = _get_session(session_id)
    scores = session.scores.select_related('rule').order_by(
        'question__section__order', 'question__section_id', 'question__order', 'question_id', 'id'
    )
    return ResponseScoreSerializer(scores, many=True).data
