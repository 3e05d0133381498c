"""
Tests for evaluating visibility conditions.
"""

import ddt
from django.test import SimpleTestCase
from pytest import raises

from questionnaire.assessment.conditions import (
    VisibilityCondition, describe_operator, evaluate, evaluate_boolean_condition, evaluate_number_condition,
    evaluate_option_condition, evaluate_text_condition
)
from questionnaire.assessment.errors import InvalidVisibilityCondition
from questionnaire.assessment.question_types import BOOLEAN_TYPE, MULTIPLE_CHOICE, RANGE_TYPE, RICH_TEXT
from questionnaire.assessment.values import normalize_response


def condition(response_type, values, operator='', trigger_question_id=1):
    return VisibilityCondition(trigger_question_id, response_type, tuple(values), operator)


@ddt.ddt
class VisibilityConditionTest(SimpleTestCase):

    def test_from_dict(self):
        parsed = VisibilityCondition.from_dict({
            'trigger_question_id': '12',
            'trigger_response_type': 'option_selected',
            'trigger_values': 3,
            'operator': 'contains',
        })
        self.assertEqual(parsed, VisibilityCondition(12, 'option_selected', (3,), 'contains'))
        self.assertEqual(VisibilityCondition.from_dict(parsed.to_dict()), parsed)

    @ddt.data(
        None,
        [],
        {'trigger_response_type': 'value_equals'},
        {'trigger_question_id': 'abc', 'trigger_response_type': 'value_equals'},
        {'trigger_question_id': 1},
        {'trigger_question_id': 1, 'trigger_response_type': 'value_equals', 'operator': 5},
    )
    def test_malformed(self, data):
        with raises(InvalidVisibilityCondition):
            VisibilityCondition.from_dict(data)


@ddt.ddt
class EvaluateTest(SimpleTestCase):

    def test_unanswered_trigger_hides(self):
        self.assertFalse(evaluate(condition('value_equals', ['yes']), None))

    @ddt.data(
        ('contains', [1, 2], [2, 3], True),
        ('contains', [1], [2, 3], False),
        ('any', [1, 5], [5], True),
        ('equals', [1, 2], [2, 1], True),
        ('exact', [1], [1, 2], False),
        ('not_equals', [1], [1, 2], True),
        ('all', [1, 2], [1, 2, 3], True),
        ('all', [1, 4], [1, 2, 3], False),
        ('none', [4], [1, 2], True),
        ('not_contains', [1], [1, 2], False),
        ('', [1], [1], True),
    )
    @ddt.unpack
    def test_option_operators(self, operator, trigger_values, selected, expected):
        self.assertEqual(evaluate_option_condition(trigger_values, selected, operator), expected)

    @ddt.data(
        ('equals', ['Yes'], '  yes ', True),
        ('equals', ['yes'], 'no', False),
        ('not_equals', ['yes'], 'no', True),
        ('contains', ['cat'], 'Concatenate', True),
        ('not_contains', ['dog'], 'cat', True),
        ('starts_with', ['con'], 'Contact', True),
        ('ends_with', ['act'], 'Contact', True),
        ('ends_with', ['con'], 'Contact', False),
    )
    @ddt.unpack
    def test_text_operators(self, operator, trigger_values, text, expected):
        self.assertEqual(evaluate_text_condition(trigger_values, text, operator), expected)

    @ddt.data(
        ('equals', [5], 5.0, True),
        ('not_equals', [5], 4.0, True),
        ('greater_than', [5], 6.0, True),
        ('greater_than', [5], 5.0, False),
        ('less_than', [5], 4.0, True),
        ('greater_than_or_equal', [5], 5.0, True),
        ('less_than_or_equal', [5], 6.0, False),
        ('between', [10, 1], 1.0, True),
        ('range', [1, 10], 11.0, False),
        ('between', [1], 1.0, False),
        ('equals', ['x'], 1.0, False),
        ('equals', [1], None, False),
    )
    @ddt.unpack
    def test_number_operators(self, operator, trigger_values, number, expected):
        self.assertEqual(evaluate_number_condition(trigger_values, number, operator), expected)

    @ddt.data(
        ('equals', ['yes'], True, True),
        ('equals', [True], False, False),
        ('not_equals', ['true'], False, True),
        ('equals', ['nonsense'], False, True),
        ('equals', [], True, False),
    )
    @ddt.unpack
    def test_boolean_operators(self, operator, trigger_values, answer, expected):
        self.assertEqual(evaluate_boolean_condition(trigger_values, answer, operator), expected)

    def test_dispatch_by_response_type(self):
        choice = normalize_response(MULTIPLE_CHOICE, {}, selected_option_ids=[3])
        self.assertTrue(evaluate(condition('option_selected', [3], 'contains'), choice))

        number = normalize_response(RANGE_TYPE, {'number': 7})
        self.assertTrue(evaluate(condition('value_range', [5, 10], 'between'), number))
        self.assertFalse(evaluate(condition('number_equals', [8], 'equals'), number))

        boolean = normalize_response(BOOLEAN_TYPE, {'boolean': True})
        self.assertTrue(evaluate(condition('boolean_equals', ['yes'], 'equals'), boolean))

    def test_number_condition_reads_text_answers(self):
        text = normalize_response(RICH_TEXT, {'text': ' 12 '})
        self.assertTrue(evaluate(condition('number_equals', [12], 'equals'), text))

    def test_unknown_response_type_compares_text(self):
        text = normalize_response(RICH_TEXT, {'text': 'Blue'})
        self.assertTrue(evaluate(condition('colour_is', ['blue'], 'equals'), text))

    def test_describe_operator(self):
        self.assertEqual(describe_operator('greater_than'), 'is greater than')
        self.assertEqual(describe_operator('mystery'), 'mystery')
        self.assertEqual(describe_operator(''), 'matches')
