"""
Tests for the response session state machine.
"""

from decimal import Decimal

import ddt
from freezegun import freeze_time
from pytest import raises

from questionnaire.assessment.conditions import VisibilityCondition
from questionnaire.assessment.question_types import BOOLEAN_TYPE, RICH_TEXT
from questionnaire.test_utils import CacheResetTest, answer
from questionnaire.tests.factories import OptionFactory, QuestionFactory, SectionFactory, SessionFactory
from questionnaire.workflow.errors import IncompleteSessionError, InvalidSessionTransition
from questionnaire.workflow.models import ResponseSession

STATES = ResponseSession.STATES


@ddt.ddt
class SessionStateTest(CacheResetTest):

    def setUp(self):
        super().setUp()
        self.section = SectionFactory()
        self.session = SessionFactory(assessment=self.section.assessment, state=STATES.draft)

    @freeze_time('2024-05-01 09:00:00')
    def test_happy_path(self):
        self.session.start()
        self.assertEqual(self.session.state, STATES.started)
        self.assertEqual(self.session.started_at.isoformat(), '2024-05-01T09:00:00+00:00')

        self.session.submit()
        self.assertEqual(self.session.state, STATES.submitted)
        self.assertIsNotNone(self.session.submitted_at)
        self.assertFalse(self.session.accepts_responses)

        self.session.mark(Decimal('8'), Decimal('10'), 'B', 'Good', details={'graded_questions': 1})
        self.session.refresh_from_db()
        self.assertEqual(self.session.state, STATES.marked)
        self.assertEqual(self.session.percentage, Decimal('80.00'))
        self.assertEqual(self.session.metadata, {'graded_questions': 1})

    def test_complete(self):
        self.session.start()
        self.session.complete()
        self.assertEqual(self.session.state, STATES.completed)
        self.assertTrue(self.session.can_be_marked())

    @ddt.data('start', 'submit', 'complete')
    def test_invalid_transitions_from_submitted(self, transition):
        self.session.state = STATES.submitted
        self.session.save()
        with raises(InvalidSessionTransition) as error:
            getattr(self.session, transition)()
        self.assertEqual(error.value.current_state, STATES.submitted)

    @ddt.data('submit', 'complete')
    def test_draft_cannot_finish(self, transition):
        with raises(InvalidSessionTransition):
            getattr(self.session, transition)()

    def test_mark_requires_markable_state(self):
        with raises(InvalidSessionTransition):
            self.session.mark(Decimal('1'), Decimal('1'), 'A', '')

    def test_remark(self):
        self.session.state = STATES.submitted
        self.session.save()
        self.session.update_metadata(marking_error='boom', marking_failed_at='yesterday', note='kept')
        self.session.mark(Decimal('1'), Decimal('2'), 'F', '')

        self.assertFalse(self.session.can_be_marked())
        self.assertTrue(self.session.can_be_marked(remark=True))
        with raises(InvalidSessionTransition):
            self.session.mark(Decimal('2'), Decimal('2'), 'A', '')

        self.session.mark(Decimal('2'), Decimal('2'), 'A', '', remark=True)
        self.session.refresh_from_db()
        self.assertEqual(self.session.grade, 'A')
        self.assertEqual(self.session.metadata, {'note': 'kept'})

    def test_percentage_without_score(self):
        self.assertEqual(self.session.percentage, Decimal('0'))


class RequiredQuestionsTest(CacheResetTest):

    def setUp(self):
        super().setUp()
        self.section = SectionFactory()
        self.drives = QuestionFactory(section=self.section, question_type=BOOLEAN_TYPE)
        self.yes = OptionFactory(question=self.drives, text='Yes')
        self.no = OptionFactory(question=self.drives, text='No')
        self.car = QuestionFactory(section=self.section, question_type=RICH_TEXT, is_required=True, text='Car?')
        self.car.set_condition(VisibilityCondition(self.drives.pk, 'boolean_equals', ('yes',), 'equals'))
        self.car.save()
        self.session = SessionFactory(assessment=self.section.assessment)

    def test_submit_rejects_unanswered_visible_required_question(self):
        answer(self.session, self.drives, option_ids=[self.yes.pk])

        with raises(IncompleteSessionError) as error:
            self.session.submit()
        self.assertEqual(error.value.missing_questions, [{'id': self.car.pk, 'text': 'Car?'}])
        self.assertEqual(self.session.state, STATES.started)

        answer(self.session, self.car, {'text': 'A blue one'})
        self.session.submit()
        self.assertEqual(self.session.state, STATES.submitted)

    def test_hidden_required_question_is_not_needed(self):
        answer(self.session, self.drives, option_ids=[self.no.pk])
        self.assertEqual(self.session.validate_required_responses(), [])
        self.session.complete()
        self.assertEqual(self.session.state, STATES.completed)

    def test_blank_answer_does_not_count(self):
        answer(self.session, self.drives, option_ids=[self.yes.pk])
        answer(self.session, self.car, {'text': '   '})
        self.assertEqual([item['id'] for item in self.session.validate_required_responses()], [self.car.pk])
