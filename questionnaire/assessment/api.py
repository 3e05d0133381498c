"""
Public interface for authoring conditional visibility.

Conditions can be attached to sections and questions.  Every function here
checks that the trigger question belongs to the same assessment and comes
strictly earlier in document order than the item it controls.
"""

import logging

from django.db import DatabaseError

from .conditions import (
    BOOLEAN_EQUALS, NUMBER_EQUALS, OPTION_SELECTED, VALUE_EQUALS, VALUE_RANGE, VisibilityCondition,
    describe_operator
)
from .errors import AssessmentInternalError, InvalidVisibilityCondition
from .models import AssessmentQuestion, AssessmentSection, trigger_precedes
from .question_types import BOOLEAN_TYPE, RANGE_TYPE
from .values import coerce_number, coerce_option_ids

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

OPTION_OPERATORS = frozenset(['contains', 'any', 'equals', 'exact', 'not_equals', 'all', 'none', 'not_contains'])
VALUE_OPERATORS = frozenset(['equals', 'not_equals', 'contains', 'not_contains', 'starts_with', 'ends_with'])


def _item_label(item):
    kind = 'section' if isinstance(item, AssessmentSection) else 'question'
    return "{} {}".format(kind, item.pk)


def _get_trigger(item, trigger_question_id):
    """
    Load the trigger question and check it may control ``item``.

    Raises:
        InvalidVisibilityCondition

    """
    try:
        trigger = AssessmentQuestion.objects.select_related('section').get(pk=trigger_question_id)
    except AssessmentQuestion.DoesNotExist as ex:
        raise InvalidVisibilityCondition(
            "Trigger question {} does not exist".format(trigger_question_id)
        ) from ex

    if trigger.section.assessment_id != item.assessment_id:
        raise InvalidVisibilityCondition(
            "Trigger question {} belongs to a different assessment".format(trigger.pk)
        )
    if not trigger_precedes(trigger, item):
        raise InvalidVisibilityCondition(
            "Trigger question {} must come before {}".format(trigger.pk, _item_label(item))
        )
    return trigger


def _save_condition(item, condition):
    if condition is None:
        item.clear_condition()
    else:
        item.set_condition(condition)
    try:
        item.save(update_fields=['is_conditional', 'visibility_conditions', 'modified'])
    except DatabaseError as ex:
        msg = "Could not save the visibility condition of {}".format(_item_label(item))
        logger.exception(msg)
        raise AssessmentInternalError(msg) from ex

    if condition is None:
        logger.info("Removed the visibility condition of %s", _item_label(item))
    else:
        logger.info(
            "Made %s conditional on question %s (%s %s)",
            _item_label(item), condition.trigger_question_id, condition.trigger_response_type, condition.operator
        )
    return item


def add_option_condition(item, trigger_question_id, option_ids, operator='contains'):
    """
    Show ``item`` only when options of a choice question are selected.

    Args:
        item (AssessmentSection or AssessmentQuestion): The item to make conditional.
        trigger_question_id (int): An earlier choice question.
        option_ids (list): Options of the trigger question.

    Keyword Arguments:
        operator (str): How the selection is compared with ``option_ids``.

    Returns:
        The updated item.

    Raises:
        InvalidVisibilityCondition: The trigger or the options are not valid
            for this item.
        AssessmentInternalError: The condition could not be saved.

    """
    trigger = _get_trigger(item, trigger_question_id)
    if not trigger.is_choice:
        raise InvalidVisibilityCondition(
            "Question {} is not answered by selecting options".format(trigger.pk)
        )
    if operator not in OPTION_OPERATORS:
        raise InvalidVisibilityCondition("Unsupported option operator '{}'".format(operator))

    selected = coerce_option_ids(option_ids)
    if not selected:
        raise InvalidVisibilityCondition("At least one trigger option is required")
    unknown = set(selected) - set(trigger.options.values_list('id', flat=True))
    if unknown:
        raise InvalidVisibilityCondition(
            "Options {} do not belong to question {}".format(sorted(unknown), trigger.pk)
        )

    condition = VisibilityCondition(
        trigger_question_id=trigger.pk,
        trigger_response_type=OPTION_SELECTED,
        trigger_values=selected,
        operator=operator,
    )
    return _save_condition(item, condition)


def add_value_condition(item, trigger_question_id, values, operator='equals'):
    """
    Show ``item`` only when an earlier question was answered with one of ``values``.

    Yes/no questions compare booleans and range questions compare numbers;
    every other question compares text.  Multiple-choice and radio questions
    are answered with options and take :func:`add_option_condition` instead.
    """
    trigger = _get_trigger(item, trigger_question_id)
    if trigger.is_choice and trigger.question_type != BOOLEAN_TYPE:
        raise InvalidVisibilityCondition(
            "Question {} is answered by selecting options; use an option condition".format(trigger.pk)
        )
    if not isinstance(values, (list, tuple)):
        values = [values]
    if not values:
        raise InvalidVisibilityCondition("At least one trigger value is required")

    if trigger.question_type == BOOLEAN_TYPE:
        response_type = BOOLEAN_EQUALS
    elif trigger.question_type == RANGE_TYPE:
        response_type = NUMBER_EQUALS
        if any(coerce_number(value) is None for value in values):
            raise InvalidVisibilityCondition("Trigger values of a range question must be numbers")
    else:
        response_type = VALUE_EQUALS

    if operator not in VALUE_OPERATORS and response_type != NUMBER_EQUALS:
        raise InvalidVisibilityCondition("Unsupported value operator '{}'".format(operator))

    condition = VisibilityCondition(
        trigger_question_id=trigger.pk,
        trigger_response_type=response_type,
        trigger_values=tuple(values),
        operator=operator,
    )
    return _save_condition(item, condition)


def add_range_condition(item, trigger_question_id, min_value, max_value):
    """
    Show ``item`` only when a range question's answer lies in ``[min_value, max_value]``.
    """
    trigger = _get_trigger(item, trigger_question_id)
    if trigger.question_type != RANGE_TYPE:
        raise InvalidVisibilityCondition("Question {} is not a range question".format(trigger.pk))

    low, high = coerce_number(min_value), coerce_number(max_value)
    if low is None or high is None:
        raise InvalidVisibilityCondition("Range bounds must be numbers")
    if low > high:
        raise InvalidVisibilityCondition("The minimum must not be greater than the maximum")

    condition = VisibilityCondition(
        trigger_question_id=trigger.pk,
        trigger_response_type=VALUE_RANGE,
        trigger_values=(low, high),
        operator='between',
    )
    return _save_condition(item, condition)


def remove_conditions(item):
    """
    Make ``item`` unconditional again.
    """
    return _save_condition(item, None)


def available_trigger_questions(item):
    """
    Questions that may be used as a trigger for ``item``, in document order.
    """
    questions = AssessmentQuestion.objects.select_related('section').filter(
        section__assessment_id=item.assessment_id
    ).exclude(pk=item.pk if isinstance(item, AssessmentQuestion) else None)
    candidates = [question for question in questions if trigger_precedes(question, item)]
    return sorted(candidates, key=lambda question: question.document_position())


def _describe_values(condition, trigger):
    if condition.trigger_response_type == OPTION_SELECTED and trigger is not None:
        texts = trigger.option_texts()
        return ", ".join(texts.get(option_id, str(option_id)) for option_id in coerce_option_ids(condition.trigger_values))
    if condition.trigger_response_type == VALUE_RANGE:
        return " and ".join(str(value) for value in condition.trigger_values[:2])
    return ", ".join(str(value) for value in condition.trigger_values)


def _summarize(kind, item, questions_by_id):
    summary = {
        'type': kind,
        'id': item.pk,
        'title': item.name if kind == 'section' else item.text,
    }
    try:
        condition = item.condition
    except InvalidVisibilityCondition as ex:
        summary.update({'trigger_question_id': item.trigger_question_id, 'description': str(ex), 'valid': False})
        return summary

    trigger = questions_by_id.get(condition.trigger_question_id)
    trigger_text = trigger.text if trigger is not None else "question {}".format(condition.trigger_question_id)
    summary.update({
        'trigger_question_id': condition.trigger_question_id,
        'trigger_question_text': trigger_text,
        'operator': condition.operator,
        'description': "Shown when '{}' {} {}".format(
            trigger_text, describe_operator(condition.operator), _describe_values(condition, trigger)
        ),
        'valid': trigger is not None and trigger_precedes(trigger, item),
    })
    return summary


def conditional_summary(assessment):
    """
    Describe every conditional section and question of an assessment.

    Returns:
        list of dict, in document order, each with the keys ``type``
        ("section" or "question"), ``id``, ``title``, ``trigger_question_id``,
        ``description`` and ``valid``.

    """
    sections = assessment.ordered_sections()
    questions_by_id = {
        question.pk: question
        for section in sections
        for question in section.questions.all()
    }

    summary = []
    for section in sections:
        if section.is_conditional:
            summary.append(_summarize('section', section, questions_by_id))
        for question in section.questions.all():
            if question.is_conditional:
                summary.append(_summarize('question', question, questions_by_id))
    return summary


def dependency_graph(assessment):
    """
    Map each trigger question id to the items it controls.

    Returns:
        dict: ``{trigger_question_id: {'sections': [ids], 'questions': [ids]}}``

    """
    graph = {}
    for section in assessment.ordered_sections():
        if section.trigger_question_id is not None:
            graph.setdefault(section.trigger_question_id, {'sections': [], 'questions': []})
            graph[section.trigger_question_id]['sections'].append(section.pk)
        for question in section.questions.all():
            if question.trigger_question_id is not None:
                graph.setdefault(question.trigger_question_id, {'sections': [], 'questions': []})
                graph[question.trigger_question_id]['questions'].append(question.pk)
    return graph
