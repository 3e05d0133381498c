"""
Notify respondents that their session has been marked.

The notifier is a callable taking the marked ``ResponseSession``; it is
configured with the ``QUESTIONNAIRE_MARKING_NOTIFIER`` setting as a dotted
path.
"""

from django.conf import settings
from django.core.mail import send_mail
from django.utils.module_loading import import_string

DEFAULT_MARKING_NOTIFIER = 'questionnaire.workflow.notifications.send_marking_email'

MARKING_EMAIL_SUBJECT = "Your results for {title}"

MARKING_EMAIL_BODY = (
    "Hello {name},\n\n"
    "Your answers to \"{title}\" have been marked.\n"
    "Score: {score} out of {max_score} ({percentage}%)\n"
    "Grade: {grade}\n"
    "{feedback}"
)


def send_marking_email(session):
    """
    Send a plain-text email with the session's results.
    """
    context = {
        'name': session.respondent_name or session.user.get_username(),
        'title': session.assessment.title,
        'score': session.total_score,
        'max_score': session.max_possible_score,
        'percentage': session.percentage,
        'grade': session.grade,
        'feedback': "\n{}\n".format(session.feedback) if session.feedback else '',
    }
    send_mail(
        MARKING_EMAIL_SUBJECT.format(**context),
        MARKING_EMAIL_BODY.format(**context),
        None,
        [session.user.email],
    )


def get_marking_notifier():
    return import_string(getattr(settings, 'QUESTIONNAIRE_MARKING_NOTIFIER', DEFAULT_MARKING_NOTIFIER))
