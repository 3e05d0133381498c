"""
Tests for notifying respondents once their session is marked.
"""

from decimal import Decimal

from celery.exceptions import Retry
from django.core import mail
from django.test.utils import override_settings
import mock

from questionnaire.test_utils import CacheResetTest
from questionnaire.tests.factories import AssessmentFactory, SessionFactory, UserFactory
from questionnaire.workflow.models import ResponseSession
from questionnaire.workflow.notifications import get_marking_notifier, send_marking_email
from questionnaire.workflow.signals import session_marked
from questionnaire.workflow.tasks import send_marking_notification_task

FAKE_NOTIFIER = mock.Mock()


def fake_notifier(session):
    FAKE_NOTIFIER(session.pk)


def failing_notifier(session):
    raise RuntimeError('smtp is down')


class MarkingNotificationTest(CacheResetTest):

    def setUp(self):
        super().setUp()
        FAKE_NOTIFIER.reset_mock()
        self.session = SessionFactory(
            assessment=AssessmentFactory(title='Geography quiz'),
            respondent_name='Ada',
            state=ResponseSession.STATES.marked,
            total_score=Decimal('9'),
            max_possible_score=Decimal('10'),
            grade='A',
            feedback='Well done',
        )

    def test_send_marking_email(self):
        send_marking_email(self.session)

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.subject, 'Your results for Geography quiz')
        self.assertEqual(message.to, [self.session.user.email])
        self.assertIn('Hello Ada', message.body)
        self.assertIn('Score: 9 out of 10 (90.00%)', message.body)
        self.assertIn('Grade: A', message.body)
        self.assertIn('Well done', message.body)

    def test_default_notifier(self):
        self.assertIs(get_marking_notifier(), send_marking_email)

    def test_task_records_delivery(self):
        self.assertTrue(send_marking_notification_task.delay(self.session.pk).get())

        self.session.refresh_from_db()
        self.assertEqual(self.session.metadata['notification_email'], self.session.user.email)
        self.assertIn('notification_sent_at', self.session.metadata)
        self.assertEqual(len(mail.outbox), 1)

    @override_settings(QUESTIONNAIRE_MARKING_NOTIFIER='questionnaire.workflow.test.test_notifications.fake_notifier')
    def test_custom_notifier(self):
        send_marking_notification_task.delay(self.session.pk).get()
        FAKE_NOTIFIER.assert_called_once_with(self.session.pk)
        self.assertEqual(len(mail.outbox), 0)

    @override_settings(QUESTIONNAIRE_MARKING_NOTIFIER='questionnaire.workflow.test.test_notifications.failing_notifier')
    def test_failure_is_recorded_and_retried(self):
        with self.assertRaises(Retry):
            send_marking_notification_task.apply(args=(self.session.pk,), throw=True)

        self.session.refresh_from_db()
        self.assertEqual(self.session.metadata['notification_error'], 'smtp is down')
        self.assertIn('notification_failed_at', self.session.metadata)

    def test_unmarked_session_is_skipped(self):
        self.session.state = ResponseSession.STATES.submitted
        self.session.save()
        self.assertFalse(send_marking_notification_task.delay(self.session.pk).get())
        self.assertEqual(len(mail.outbox), 0)

    def test_missing_session_is_skipped(self):
        self.assertFalse(send_marking_notification_task.delay(987654).get())


class MarkedSignalReceiverTest(CacheResetTest):

    @mock.patch('questionnaire.workflow.receivers.send_marking_notification_task.apply_async')
    def test_queues_notification(self, mock_apply_async):
        session = SessionFactory(state=ResponseSession.STATES.marked)
        session_marked.send(sender=ResponseSession, session_id=session.pk)
        mock_apply_async.assert_called_once_with(args=(session.pk,))

    @mock.patch('questionnaire.workflow.receivers.send_marking_notification_task.apply_async')
    def test_skips_users_without_email(self, mock_apply_async):
        session = SessionFactory(user=UserFactory(email=''), state=ResponseSession.STATES.marked)
        session_marked.send(sender=ResponseSession, session_id=session.pk)
        mock_apply_async.assert_not_called()

    @mock.patch('questionnaire.workflow.receivers.send_marking_notification_task.apply_async')
    def test_queueing_errors_are_logged(self, mock_apply_async):
        mock_apply_async.side_effect = ConnectionError('broker down')
        session = SessionFactory(state=ResponseSession.STATES.marked)
        with self.assertLogs('questionnaire.workflow.receivers', level='ERROR'):
            session_marked.send(sender=ResponseSession, session_id=session.pk)
