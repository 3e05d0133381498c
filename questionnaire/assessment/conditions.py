"""
Evaluation of visibility conditions.

A visibility condition gates a section or a question on the answer given to
an earlier question.  Evaluation is a pure function of the condition and the
trigger question's :class:`~questionnaire.assessment.values.NormalizedResponse`.
"""

from collections import namedtuple

from .errors import InvalidVisibilityCondition
from .values import coerce_boolean, coerce_number, coerce_option_ids

OPTION_SELECTED = 'option_selected'
VALUE_EQUALS = 'value_equals'
TEXT_EQUALS = 'text_equals'
VALUE_RANGE = 'value_range'
NUMBER_EQUALS = 'number_equals'
BOOLEAN_EQUALS = 'boolean_equals'

TRIGGER_RESPONSE_TYPES = (
    OPTION_SELECTED, VALUE_EQUALS, TEXT_EQUALS, VALUE_RANGE, NUMBER_EQUALS, BOOLEAN_EQUALS,
)

OPERATOR_DESCRIPTIONS = {
    'contains': 'includes any of',
    'any': 'includes any of',
    'equals': 'equals',
    'exact': 'equals exactly',
    'not_equals': 'does not equal',
    'all': 'includes all of',
    'none': 'does not include any of',
    'not_contains': 'does not include any of',
    'starts_with': 'starts with',
    'ends_with': 'ends with',
    'greater_than': 'is greater than',
    'less_than': 'is less than',
    'greater_than_or_equal': 'is at least',
    'less_than_or_equal': 'is at most',
    'between': 'is between',
    'range': 'is between',
}


class VisibilityCondition(namedtuple('VisibilityCondition', [
    'trigger_question_id', 'trigger_response_type', 'trigger_values', 'operator',
])):
    """
    A rule that shows an item only when an earlier question was answered a
    certain way.
    """
    __slots__ = ()

    @classmethod
    def from_dict(cls, data):
        """
        Build a condition from its stored JSON shape.

        Args:
            data (dict): With keys ``trigger_question_id``,
                ``trigger_response_type``, ``trigger_values`` and ``operator``.

        Returns:
            VisibilityCondition

        Raises:
            InvalidVisibilityCondition: The data is missing a field or has the
                wrong shape.

        """
        if not isinstance(data, dict):
            raise InvalidVisibilityCondition("Visibility condition must be a dictionary")

        try:
            trigger_question_id = int(data.get('trigger_question_id'))
        except (TypeError, ValueError) as ex:
            raise InvalidVisibilityCondition(
                "Invalid trigger question id: {!r}".format(data.get('trigger_question_id'))
            ) from ex

        trigger_response_type = data.get('trigger_response_type')
        if not trigger_response_type or not isinstance(trigger_response_type, str):
            raise InvalidVisibilityCondition("A trigger response type is required")

        trigger_values = data.get('trigger_values')
        if trigger_values is None:
            trigger_values = []
        elif not isinstance(trigger_values, (list, tuple)):
            trigger_values = [trigger_values]

        operator = data.get('operator') or ''
        if not isinstance(operator, str):
            raise InvalidVisibilityCondition("Operator must be a string")

        return cls(
            trigger_question_id=trigger_question_id,
            trigger_response_type=trigger_response_type,
            trigger_values=tuple(trigger_values),
            operator=operator,
        )

    def to_dict(self):
        return {
            'trigger_question_id': self.trigger_question_id,
            'trigger_response_type': self.trigger_response_type,
            'trigger_values': list(self.trigger_values),
            'operator': self.operator,
        }


def evaluate(condition, response):
    """
    Decide whether the item guarded by ``condition`` is visible.

    Args:
        condition (VisibilityCondition): The condition to evaluate.
        response (NormalizedResponse or None): The trigger question's answer,
            or None if it has not been answered.

    Returns:
        bool

    """
    # Items stay hidden until their trigger question has an answer.
    if response is None:
        return False

    # Unknown trigger types fall back to comparing the answer as text.
    evaluator = _EVALUATORS.get(condition.trigger_response_type, _evaluate_text)
    return evaluator(condition, response)


def evaluate_option_condition(trigger_values, selected_option_ids, operator):
    """
    Compare trigger option ids with the selected option ids.
    """
    trigger_ids = set(coerce_option_ids(trigger_values))
    selected_ids = set(coerce_option_ids(selected_option_ids))

    if operator in ('equals', 'exact'):
        return selected_ids == trigger_ids
    if operator == 'not_equals':
        return selected_ids != trigger_ids
    if operator == 'all':
        return trigger_ids.issubset(selected_ids)
    if operator in ('none', 'not_contains'):
        return not trigger_ids & selected_ids
    return bool(trigger_ids & selected_ids)


def evaluate_text_condition(trigger_values, response_text, operator):
    """
    Case-insensitive, whitespace-trimmed comparison of the answer text.
    """
    value = (response_text or '').strip().lower()
    triggers = [str(trigger).strip().lower() for trigger in trigger_values if trigger is not None]

    if operator == 'not_equals':
        return value not in triggers
    if operator == 'contains':
        return any(trigger in value for trigger in triggers)
    if operator == 'not_contains':
        return not any(trigger in value for trigger in triggers)
    if operator == 'starts_with':
        return any(value.startswith(trigger) for trigger in triggers)
    if operator == 'ends_with':
        return any(value.endswith(trigger) for trigger in triggers)
    return value in triggers


def evaluate_number_condition(trigger_values, response_number, operator):
    """
    Numeric comparison of the answer with the trigger numbers.
    """
    numbers = [number for number in (coerce_number(value) for value in trigger_values) if number is not None]
    if not numbers or response_number is None:
        return False

    first = numbers[0]
    if operator == 'not_equals':
        return response_number not in numbers
    if operator == 'greater_than':
        return response_number > first
    if operator == 'less_than':
        return response_number < first
    if operator == 'greater_than_or_equal':
        return response_number >= first
    if operator == 'less_than_or_equal':
        return response_number <= first
    if operator in ('between', 'range'):
        if len(numbers) < 2:
            return False
        low, high = min(numbers[:2]), max(numbers[:2])
        return low <= response_number <= high
    return response_number in numbers


def evaluate_boolean_condition(trigger_values, response_boolean, operator):
    """
    Compare the answer's boolean with the first trigger value.
    """
    if not trigger_values:
        return False
    expected = coerce_boolean(trigger_values[0])
    if expected is None:
        expected = False
    actual = bool(response_boolean)
    if operator == 'not_equals':
        return actual != expected
    return actual == expected


def describe_operator(operator):
    """
    Human-readable text for an operator, used in authoring summaries.
    """
    return OPERATOR_DESCRIPTIONS.get(operator, operator or 'matches')


def _evaluate_options(condition, response):
    return evaluate_option_condition(
        condition.trigger_values, response.selected_option_ids, condition.operator
    )


def _evaluate_text(condition, response):
    return evaluate_text_condition(condition.trigger_values, response.comparable_text(), condition.operator)


def _evaluate_number(condition, response):
    number = response.number
    if number is None:
        number = coerce_number(response.text)
    return evaluate_number_condition(condition.trigger_values, number, condition.operator)


def _evaluate_boolean(condition, response):
    return evaluate_boolean_condition(condition.trigger_values, response.boolean, condition.operator)


_EVALUATORS = {
    OPTION_SELECTED: _evaluate_options,
    VALUE_EQUALS: _evaluate_text,
    TEXT_EQUALS: _evaluate_text,
    VALUE_RANGE: _evaluate_number,
    NUMBER_EQUALS: _evaluate_number,
    BOOLEAN_EQUALS: _evaluate_boolean,
}
