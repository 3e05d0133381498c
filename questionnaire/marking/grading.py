"""
The marking pass: score every visible question of a session, total the
scores, look up the grade and feedback, and mark the session.
"""

from collections import namedtuple
from decimal import ROUND_HALF_UP, Decimal
import logging
import re

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils.timezone import now

from questionnaire.workflow.errors import InvalidSessionTransition, ResponseSessionNotFound
from questionnaire.workflow.models import ResponseSession
from questionnaire.workflow.signals import session_marked

from .errors import MarkingConfigurationError, NoActiveMarkingScheme, ResponseGradingError
from .models import MarkingScheme, ResponseScore
from .rules import grade_question

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

DEFAULT_GRADE = getattr(settings, 'QUESTIONNAIRE_DEFAULT_GRADE', 'F')

TWO_PLACES = Decimal('0.01')

PERCENT_PLACEHOLDER = re.compile(r'%\{(\w+)\}')

MarkingResult = namedtuple('MarkingResult', [
    'session_id',
    'scheme_id',
    'total_score',
    'max_possible_score',
    'percentage',
    'grade',
    'feedback',
    'graded_questions',
    'grading_errors',
])


class _Placeholders(dict):
    """
    Leaves unknown ``{placeholders}`` in a template untouched.
    """
    def __missing__(self, key):
        return '{' + key + '}'


def percentage_of(earned, possible):
    """
    ``earned`` as a percentage of ``possible``, rounded to two places.

    A question set worth nothing scores 0%.
    """
    if not possible:
        return Decimal('0.00')
    return (Decimal(earned) * 100 / Decimal(possible)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def compute_grade(percentage, boundaries, total_possible=None):
    """
    Look up the grade for ``percentage``.

    Args:
        percentage (Decimal): The achieved percentage.
        boundaries (list): ``(label, minimum percentage)`` pairs in declared order.

    Keyword Arguments:
        total_possible (Decimal): When given and zero, the lowest grade is
            returned without looking at the percentage.

    Returns:
        str: The first label whose minimum the percentage meets, otherwise
        ``QUESTIONNAIRE_DEFAULT_GRADE``.

    """
    if not boundaries:
        return DEFAULT_GRADE
    if total_possible is not None and not total_possible:
        return min(boundaries, key=lambda boundary: boundary[1])[0]
    for label, minimum in boundaries:
        if percentage >= minimum:
            return label
    return DEFAULT_GRADE


def render_feedback(template, **context):
    """
    Fill a feedback template's ``{score}``, ``{max_score}``, ``{percentage}``,
    ``{grade}`` and ``{name}`` placeholders.

    Placeholders may also be written as ``%{score}``.
    """
    if not template:
        return ''
    template = PERCENT_PLACEHOLDER.sub(r'{\1}', template)
    try:
        return template.format_map(_Placeholders(context))
    except (ValueError, IndexError, AttributeError):
        logger.warning("Could not render feedback template %r", template)
        return template


def resolve_scheme(assessment_id, marking_scheme_id=None):
    """
    Find the scheme to mark with.

    Raises:
        MarkingConfigurationError: The given scheme does not belong to the
            assessment.
        NoActiveMarkingScheme: No scheme was given and none is active.

    """
    if marking_scheme_id is not None:
        try:
            return MarkingScheme.objects.get(pk=marking_scheme_id, assessment_id=assessment_id)
        except MarkingScheme.DoesNotExist as ex:
            raise MarkingConfigurationError(
                "Marking scheme {} does not exist for assessment {}".format(marking_scheme_id, assessment_id)
            ) from ex

    scheme = MarkingScheme.active_for_assessment(assessment_id)
    if scheme is None:
        raise NoActiveMarkingScheme("No active marking scheme for assessment {}".format(assessment_id))
    return scheme


def _load_session(session_id, for_update=False):
    sessions = ResponseSession.objects.select_related('assessment', 'user')
    if for_update:
        sessions = sessions.select_for_update()
    try:
        return sessions.get(pk=session_id)
    except ResponseSession.DoesNotExist as ex:
        raise ResponseSessionNotFound("Response session {} does not exist".format(session_id)) from ex


def _record_failure(session_id, error):
    try:
        session = ResponseSession.objects.get(pk=session_id)
        session.update_metadata(marking_error=str(error), marking_failed_at=now().isoformat())
    except (ResponseSession.DoesNotExist, DatabaseError):
        logger.exception("Could not record the marking error of session %s", session_id)


def mark_session(session_id, marking_scheme_id=None, remark=False):
    """
    Mark a submitted session.

    All scores and the session's totals are written in one transaction.  A
    question whose rules cannot be applied is logged and skipped; it adds
    nothing to the totals.

    Args:
        session_id (int): The session to mark.

    Keyword Arguments:
        marking_scheme_id (int): Mark with this scheme instead of the active one.
        remark (bool): Allow marking a session that has already been marked.

    Returns:
        MarkingResult

    Raises:
        ResponseSessionNotFound: The session does not exist.
        InvalidSessionTransition: The session is not ready to be marked.
        MarkingConfigurationError: The scheme is missing or misconfigured.
            The error is also recorded in the session's metadata.

    """
    session = _load_session(session_id)
    if not session.can_be_marked(remark=remark):
        raise InvalidSessionTransition(session.pk, session.state, ResponseSession.STATES.marked)

    try:
        result = _mark(session, marking_scheme_id, remark)
    except Exception as ex:
        logger.exception("Marking failed for session %s", session_id)
        _record_failure(session_id, ex)
        raise

    logger.info(
        "Marked session %s with scheme %s: %s/%s (%s%%), grade %s, %s questions graded, %s errors",
        result.session_id, result.scheme_id, result.total_score, result.max_possible_score,
        result.percentage, result.grade, result.graded_questions, result.grading_errors
    )
    return result


def _mark(session, marking_scheme_id, remark):
    scheme = resolve_scheme(session.assessment_id, marking_scheme_id)

    rules_by_question = {}
    criteria_by_rule = {}
    for rule in scheme.active_rules():
        criteria_by_rule[rule.pk] = rule.check_configuration()
        rules_by_question.setdefault(rule.question_id, []).append(rule)

    with transaction.atomic():
        session = _load_session(session.pk, for_update=True)
        if not session.can_be_marked(remark=remark):
            raise InvalidSessionTransition(session.pk, session.state, ResponseSession.STATES.marked)

        visibility = session.visibility()
        responses = {response.question_id: response for response in session.responses.all()}

        # Scores from any earlier pass are replaced, whichever scheme produced them.
        ResponseScore.objects.filter(session=session).delete()

        total_earned, total_possible = Decimal('0'), Decimal('0')
        graded, errors = 0, 0
        for question in visibility.visible_questions():
            question_rules = rules_by_question.get(question.pk)
            if not question_rules:
                continue
            try:
                with transaction.atomic():
                    records = grade_question(
                        question, question_rules, visibility.responses.get(question.pk), criteria_by_rule
                    )
                    ResponseScore.objects.bulk_create([
                        ResponseScore(
                            session=session,
                            question=question,
                            response=responses.get(question.pk),
                            scheme=scheme,
                            rule=record.rule,
                            score_earned=record.points_earned,
                            max_possible_score=record.points_possible,
                            scoring_details=record.details,
                            feedback=record.feedback,
                        )
                        for record in records
                    ])
            except (ResponseGradingError, DatabaseError):
                errors += 1
                logger.exception("Skipping question %s while marking session %s", question.pk, session.pk)
                continue

            graded += 1
            total_earned += sum(record.points_earned for record in records)
            total_possible += sum(record.points_possible for record in records)

        percentage = percentage_of(total_earned, total_possible)
        grade = compute_grade(percentage, scheme.grade_boundaries, total_possible)
        feedback = render_feedback(
            scheme.feedback_templates.get(grade),
            score=total_earned,
            max_score=total_possible,
            percentage=percentage,
            grade=grade,
            name=session.respondent_name,
        )

        details = {
            'marked_with_scheme_id': scheme.pk,
            'percentage': str(percentage),
            'graded_questions': graded,
            'grading_errors': errors,
        }
        if scheme.passing_score is not None:
            details['passed'] = percentage >= scheme.passing_score

        session.mark(total_earned, total_possible, grade, feedback, remark=remark, details=details)

        session_id = session.pk
        transaction.on_commit(lambda: session_marked.send(sender=ResponseSession, session_id=session_id))

    return MarkingResult(
        session_id=session.pk,
        scheme_id=scheme.pk,
        total_score=total_earned,
        max_possible_score=total_possible,
        percentage=percentage,
        grade=grade,
        feedback=feedback,
        graded_questions=graded,
        grading_errors=errors,
    )
