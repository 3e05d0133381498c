"""
Tests for the response session API.
"""

from decimal import Decimal

import ddt
from django.db import DatabaseError
import mock
from pytest import raises

from questionnaire.assessment.conditions import VisibilityCondition
from questionnaire.assessment.question_types import BOOLEAN_TYPE, FILE_UPLOAD, MULTIPLE_CHOICE, RADIO, RICH_TEXT
from questionnaire.test_utils import CacheResetTest
from questionnaire.tests.factories import (
    AssessmentFactory, MarkingRuleFactory, MarkingSchemeFactory, OptionFactory, QuestionFactory, SectionFactory,
    UserFactory
)
from questionnaire.workflow import api as workflow_api
from questionnaire.workflow.errors import (
    IncompleteSessionError, InvalidSessionTransition, ResponseSessionInternalError, ResponseSessionNotFound,
    ResponseSessionRequestError
)
from questionnaire.workflow.models import QuestionResponse, ResponseSession


class SessionApiTestCase(CacheResetTest):

    def setUp(self):
        super().setUp()
        self.user = UserFactory()
        self.assessment = AssessmentFactory()
        self.section = SectionFactory(assessment=self.assessment)
        self.text = QuestionFactory(section=self.section, question_type=RICH_TEXT, is_required=True)
        self.checkboxes = QuestionFactory(section=self.section, question_type=MULTIPLE_CHOICE)
        self.red = OptionFactory(question=self.checkboxes, text='Red')
        self.blue = OptionFactory(question=self.checkboxes, text='Blue')
        self.radio = QuestionFactory(section=self.section, question_type=RADIO)
        self.left = OptionFactory(question=self.radio, text='Left')
        self.right = OptionFactory(question=self.radio, text='Right')

    def started_session(self):
        session = workflow_api.create_session(self.user, self.assessment.pk)
        return workflow_api.start_session(session['id'])


@ddt.ddt
class CreateSessionTest(SessionApiTestCase):

    def test_create_and_get(self):
        session = workflow_api.create_session(self.user, self.assessment.pk, country_code='gb')
        self.assertEqual(session['state'], 'draft')
        self.assertEqual(session['country_code'], 'GB')
        self.assertEqual(session['respondent_name'], 'Ada Lovelace')
        self.assertIsNone(session['percentage'])
        self.assertEqual(workflow_api.get_session(session['id']), session)

    def test_create_is_idempotent(self):
        first = workflow_api.create_session(self.user, self.assessment.pk)
        second = workflow_api.create_session(self.user, self.assessment.pk, respondent_name='Someone else')
        self.assertEqual(first['id'], second['id'])
        self.assertEqual(ResponseSession.objects.count(), 1)

    def test_inactive_assessment(self):
        self.assessment.active = False
        self.assessment.save()
        with raises(ResponseSessionRequestError):
            workflow_api.create_session(self.user, self.assessment.pk)

    def test_unknown_assessment(self):
        with raises(ResponseSessionRequestError):
            workflow_api.create_session(self.user, 987654)

    def test_restricted_country(self):
        self.assessment.restricted_countries = ['FR']
        self.assessment.save()
        with raises(ResponseSessionRequestError):
            workflow_api.create_session(self.user, self.assessment.pk, country_code='fr')
        self.assertEqual(workflow_api.create_session(self.user, self.assessment.pk, country_code='DE')['state'], 'draft')

    @mock.patch.object(ResponseSession.objects, 'get_or_create')
    def test_database_error(self, mock_get_or_create):
        mock_get_or_create.side_effect = DatabaseError('down')
        with raises(ResponseSessionInternalError):
            workflow_api.create_session(self.user, self.assessment.pk)

    def test_missing_session(self):
        with raises(ResponseSessionNotFound):
            workflow_api.get_session(987654)

    def test_start_twice(self):
        session = self.started_session()
        self.assertEqual(session['state'], 'started')
        with raises(InvalidSessionTransition):
            workflow_api.start_session(session['id'])


@ddt.ddt
class RecordResponseTest(SessionApiTestCase):

    def setUp(self):
        super().setUp()
        self.session = self.started_session()

    def test_text_answer(self):
        response = workflow_api.record_response(self.session['id'], self.text.pk, {'text': 'Hello'})
        self.assertEqual(response['value'], {'text': 'Hello'})
        self.assertEqual(response['selected_option_ids'], [])

    def test_answer_is_replaced(self):
        workflow_api.record_response(self.session['id'], self.checkboxes.pk, selected_option_ids=[self.red.pk])
        response = workflow_api.record_response(
            self.session['id'], self.checkboxes.pk, selected_option_ids=[self.blue.pk, str(self.red.pk)]
        )
        self.assertEqual(sorted(response['selected_option_ids']), sorted([self.red.pk, self.blue.pk]))
        self.assertEqual(QuestionResponse.objects.filter(question=self.checkboxes).count(), 1)

    def test_options_from_value(self):
        response = workflow_api.record_response(
            self.session['id'], self.radio.pk, {'selected_option_ids': [self.left.pk]}
        )
        self.assertEqual(response['selected_option_ids'], [self.left.pk])

    def test_single_choice_accepts_one_option(self):
        with raises(ResponseSessionRequestError):
            workflow_api.record_response(
                self.session['id'], self.radio.pk, selected_option_ids=[self.left.pk, self.right.pk]
            )

    def test_foreign_option(self):
        with raises(ResponseSessionRequestError):
            workflow_api.record_response(self.session['id'], self.radio.pk, selected_option_ids=[self.red.pk])

    def test_foreign_question(self):
        with raises(ResponseSessionRequestError):
            workflow_api.record_response(self.session['id'], QuestionFactory().pk, {'text': 'x'})

    def test_boolean_answer(self):
        question = QuestionFactory(section=self.section, question_type=BOOLEAN_TYPE)
        yes = OptionFactory(question=question, text='Yes')
        response = workflow_api.record_response(self.session['id'], question.pk, selected_option_ids=[yes.pk])
        self.assertEqual(response['value'], {'selected_option_ids': [yes.pk], 'boolean': True})

    def test_file_answer(self):
        question = QuestionFactory(section=self.section, question_type=FILE_UPLOAD)
        response = workflow_api.record_response(
            self.session['id'], question.pk, {'filename': 'a.png', 'content_type': 'image/png', 'size': 12}
        )
        self.assertEqual(
            response['value'], {'file': {'filename': 'a.png', 'content_type': 'image/png', 'size': 12}}
        )

    @ddt.data('submitted', 'completed', 'marked')
    def test_closed_session(self, state):
        ResponseSession.objects.filter(pk=self.session['id']).update(state=state)
        with raises(ResponseSessionRequestError):
            workflow_api.record_response(self.session['id'], self.text.pk, {'text': 'late'})


class SubmitSessionTest(SessionApiTestCase):

    def setUp(self):
        super().setUp()
        self.session = self.started_session()

    def test_submit_requires_answers(self):
        with raises(IncompleteSessionError) as error:
            workflow_api.submit_session(self.session['id'], queue_marking=False)
        self.assertEqual([item['id'] for item in error.value.missing_questions], [self.text.pk])

    @mock.patch('questionnaire.workflow.api.mark_session_task.apply_async')
    def test_submit_queues_marking_on_commit(self, mock_apply_async):
        workflow_api.record_response(self.session['id'], self.text.pk, {'text': 'Hi'})

        with self.captureOnCommitCallbacks(execute=True):
            session = workflow_api.submit_session(self.session['id'])

        self.assertEqual(session['state'], 'submitted')
        mock_apply_async.assert_called_once_with(
            args=(self.session['id'],), kwargs={'marking_scheme_id': None, 'remark': False}
        )

    @mock.patch('questionnaire.workflow.api.mark_session_task.apply_async')
    def test_complete_without_marking(self, mock_apply_async):
        workflow_api.record_response(self.session['id'], self.text.pk, {'text': 'Hi'})

        with self.captureOnCommitCallbacks(execute=True):
            session = workflow_api.complete_session(self.session['id'], queue_marking=False)

        self.assertEqual(session['state'], 'completed')
        mock_apply_async.assert_not_called()

    def test_submit_and_mark_in_process(self):
        scheme = MarkingSchemeFactory(assessment=self.assessment, active=True)
        MarkingRuleFactory(scheme=scheme, question=self.text, points=Decimal('3'), criteria={'expected_value': 'hi'})
        workflow_api.record_response(self.session['id'], self.text.pk, {'text': 'Hi'})

        with self.captureOnCommitCallbacks(execute=True):
            workflow_api.submit_session(self.session['id'])

        session = workflow_api.get_session(self.session['id'])
        self.assertEqual(session['state'], 'marked')
        self.assertEqual(session['total_score'], '3.00')
        self.assertEqual(session['percentage'], '100.00')

        scores = workflow_api.get_scores(self.session['id'])
        self.assertEqual(len(scores), 1)
        self.assertEqual(scores[0]['rule_type'], 'exact_match')
        self.assertEqual(scores[0]['score_earned'], '3.00')


class NavigationApiTest(SessionApiTestCase):

    def setUp(self):
        super().setUp()
        self.radio.set_condition(VisibilityCondition(self.checkboxes.pk, 'option_selected', (self.red.pk,), 'contains'))
        self.radio.save()
        self.session = self.started_session()

    def test_visible_questions_follow_answers(self):
        self.assertEqual(
            [question['id'] for question in workflow_api.visible_questions(self.session['id'])],
            [self.text.pk, self.checkboxes.pk]
        )
        workflow_api.record_response(self.session['id'], self.checkboxes.pk, selected_option_ids=[self.red.pk])
        self.assertEqual(
            [question['id'] for question in workflow_api.visible_questions(self.session['id'])],
            [self.text.pk, self.checkboxes.pk, self.radio.pk]
        )
        self.assertEqual(
            workflow_api.visible_sections(self.session['id']),
            [{'id': self.section.pk, 'name': self.section.name}]
        )

    def test_progress(self):
        workflow_api.record_response(self.session['id'], self.text.pk, {'text': 'Hi'})
        progress = workflow_api.session_progress(self.session['id'])
        self.assertEqual(progress['total_questions'], 2)
        self.assertEqual(progress['answered_questions'], 1)
        self.assertEqual(progress['completion_percentage'], 50.0)


class MarkingApiTest(SessionApiTestCase):

    def setUp(self):
        super().setUp()
        self.session = self.started_session()

    @mock.patch('questionnaire.workflow.api.mark_session_task.apply_async')
    def test_mark_in_background_skips_unmarkable(self, mock_apply_async):
        self.assertFalse(workflow_api.mark_in_background(self.session['id']))
        mock_apply_async.assert_not_called()

    @mock.patch('questionnaire.workflow.api.mark_session_task.apply_async')
    def test_mark_in_background(self, mock_apply_async):
        ResponseSession.objects.filter(pk=self.session['id']).update(state='completed')
        self.assertTrue(workflow_api.mark_in_background(self.session['id'], marking_scheme_id=3))
        mock_apply_async.assert_called_once_with(
            args=(self.session['id'],), kwargs={'marking_scheme_id': 3, 'remark': False}
        )

    def test_mark_synchronously(self):
        scheme = MarkingSchemeFactory(assessment=self.assessment, active=True, settings={
            'grade_boundaries': {'Pass': 50, 'Fail': 0},
        })
        MarkingRuleFactory(scheme=scheme, question=self.text, points=Decimal('4'), criteria={'expected_value': 'no'})
        ResponseSession.objects.filter(pk=self.session['id']).update(state='submitted')

        result = workflow_api.mark_synchronously(self.session['id'])
        self.assertEqual(result['grade'], 'Fail')
        self.assertEqual(result['max_possible_score'], Decimal('4.00'))

    def test_scores_after_remarking_with_another_scheme(self):
        first = MarkingSchemeFactory(assessment=self.assessment, active=True)
        MarkingRuleFactory(scheme=first, question=self.text, points=Decimal('10'), criteria={'expected_value': 'hi'})
        second = MarkingSchemeFactory(assessment=self.assessment)
        MarkingRuleFactory(scheme=second, question=self.text, points=Decimal('4'), criteria={'expected_value': 'hi'})
        workflow_api.record_response(self.session['id'], self.text.pk, {'text': 'hi'})
        ResponseSession.objects.filter(pk=self.session['id']).update(state='submitted')

        workflow_api.mark_synchronously(self.session['id'])
        workflow_api.mark_synchronously(self.session['id'], marking_scheme_id=second.pk, remark=True)

        scores = workflow_api.get_scores(self.session['id'])
        self.assertEqual([score['score_earned'] for score in scores], ['4.00'])
        self.assertEqual(workflow_api.get_session(self.session['id'])['total_score'], '4.00')

    @mock.patch('questionnaire.workflow.api.bulk_mark_sessions_task.apply_async')
    def test_bulk_mark(self, mock_apply_async):
        mock_apply_async.return_value = mock.Mock(id='task-id')
        self.assertEqual(workflow_api.bulk_mark(iter([1, 2]), marking_scheme_id=5), 'task-id')
        mock_apply_async.assert_called_once_with(args=([1, 2],), kwargs={'marking_scheme_id': 5})
