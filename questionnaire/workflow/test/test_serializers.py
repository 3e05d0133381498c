"""
Tests for the response session serializers.
"""

from decimal import Decimal

from questionnaire.assessment.question_types import MULTIPLE_CHOICE
from questionnaire.test_utils import CacheResetTest, answer
from questionnaire.tests.factories import OptionFactory, QuestionFactory, SessionFactory
from questionnaire.workflow.serializers import QuestionResponseSerializer, ResponseSessionSerializer


class SerializerTest(CacheResetTest):

    def test_session_percentage(self):
        session = SessionFactory(total_score=Decimal('1'), max_possible_score=Decimal('3'))
        data = ResponseSessionSerializer(session).data
        self.assertEqual(data['percentage'], '33.33')
        self.assertEqual(data['state'], 'started')

    def test_response_selected_options(self):
        question = QuestionFactory(question_type=MULTIPLE_CHOICE)
        first = OptionFactory(question=question)
        second = OptionFactory(question=question)
        session = SessionFactory(assessment=question.assessment)

        data = QuestionResponseSerializer(answer(session, question, option_ids=[second.pk, first.pk])).data
        self.assertEqual(data['selected_option_ids'], [first.pk, second.pk])
        self.assertEqual(data['value'], {'selected_option_ids': [first.pk, second.pk]})
