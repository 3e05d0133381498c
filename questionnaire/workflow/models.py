"""
Response session models track one respondent's attempt at an assessment,
from the first answer until the session has been marked.

NOTE: We use migrations, so if you make any edits to this file, you
need to then generate a matching migration for it using:

    ./manage.py makemigrations workflow

"""

from decimal import Decimal
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Prefetch
from django.utils.timezone import now

from model_utils import Choices
from model_utils.fields import StatusField
from model_utils.models import TimeStampedModel

from questionnaire.assessment.models import Assessment, AssessmentQuestion, AssessmentQuestionOption
from questionnaire.assessment.visibility import VisibilityResolver
from questionnaire.assessment.values import normalize_response

from .errors import IncompleteSessionError, InvalidSessionTransition

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name


class ResponseSession(TimeStampedModel):
    """
    One respondent's attempt at one assessment.

    The session moves through its states as follows::

        draft --start()--> started --submit()--> submitted --mark()--> marked
                           started --complete()--> completed --mark()--> marked

    Answers can only be changed while the session is ``draft`` or
    ``started``.  A marked session can only be marked again explicitly.
    """
    STATES = Choices(
        ('draft', 'Draft'),
        ('started', 'Started'),
        ('submitted', 'Submitted'),
        ('completed', 'Completed'),
        ('marked', 'Marked'),
    )

    EDITABLE_STATES = (STATES.draft, STATES.started)
    MARKABLE_STATES = (STATES.submitted, STATES.completed)

    user = models.ForeignKey(settings.AUTH_USER_MODEL, related_name='response_sessions', on_delete=models.CASCADE)
    assessment = models.ForeignKey(Assessment, related_name='response_sessions', on_delete=models.CASCADE)
    respondent_name = models.CharField(max_length=255, blank=True, default='')
    country_code = models.CharField(max_length=8, blank=True, default='')
    state = StatusField(choices_name='STATES', db_index=True)

    total_score = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    max_possible_score = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    grade = models.CharField(max_length=32, blank=True, default='')
    feedback = models.TextField(blank=True, default='')
    metadata = models.JSONField(default=dict, blank=True)

    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    marked_at = models.DateTimeField(null=True, blank=True, db_index=True)

    class Meta:
        app_label = 'workflow'
        ordering = ['-created']
        unique_together = ('user', 'assessment')

    def __str__(self):
        return "Session {} ({})".format(self.pk, self.state)

    @property
    def accepts_responses(self):
        return self.state in self.EDITABLE_STATES

    @property
    def percentage(self):
        if not self.max_possible_score:
            return Decimal('0')
        return (self.total_score * 100 / self.max_possible_score).quantize(Decimal('0.01'))

    def can_be_marked(self, remark=False):
        return self.state in self.MARKABLE_STATES or (remark and self.state == self.STATES.marked)

    def normalized_responses(self):
        """
        Map question ids to the normalized answers of this session.
        """
        responses = self.responses.select_related('question').prefetch_related(
            'selected_options',
            Prefetch('question__options', queryset=AssessmentQuestionOption.objects.order_by('order', 'id')),
        )
        return {response.question_id: response.normalized() for response in responses}

    def visibility(self):
        """
        Resolve the sections and questions this session can see.

        Returns:
            VisibilityResolver

        """
        return VisibilityResolver(
            self.assessment.ordered_sections(), self.normalized_responses(), country_code=self.country_code or None
        )

    def validate_required_responses(self):
        """
        List the visible, required questions that have no answer yet.

        Returns:
            list of dict: ``{'id': question id, 'text': question text}`` in
            document order; empty when nothing is missing.

        """
        return [
            {'id': question.pk, 'text': question.text}
            for question in self.visibility().unanswered_required_questions()
        ]

    def _transition(self, target, allowed_from, **changes):
        if self.state not in allowed_from:
            raise InvalidSessionTransition(self.pk, self.state, target)
        previous = self.state
        self.state = target
        for field_name, value in changes.items():
            setattr(self, field_name, value)
        self.save(update_fields=['state', 'modified'] + list(changes))
        logger.info("Session %s moved from '%s' to '%s'", self.pk, previous, target)

    def start(self):
        self._transition(self.STATES.started, (self.STATES.draft,), started_at=now())

    def submit(self):
        """
        Freeze the answers and hand the session over for marking.

        Raises:
            InvalidSessionTransition: The session is not ``started``.
            IncompleteSessionError: Required, visible questions are unanswered.

        """
        if self.state != self.STATES.started:
            raise InvalidSessionTransition(self.pk, self.state, self.STATES.submitted)
        missing = self.validate_required_responses()
        if missing:
            raise IncompleteSessionError(missing)
        self._transition(self.STATES.submitted, (self.STATES.started,), submitted_at=now())

    def complete(self):
        """
        Finish the session without submitting it.

        Raises:
            InvalidSessionTransition: The session is not ``started``.
            IncompleteSessionError: Required, visible questions are unanswered.

        """
        if self.state != self.STATES.started:
            raise InvalidSessionTransition(self.pk, self.state, self.STATES.completed)
        missing = self.validate_required_responses()
        if missing:
            raise IncompleteSessionError(missing)
        self._transition(self.STATES.completed, (self.STATES.started,), completed_at=now())

    def mark(self, total_score, max_possible_score, grade, feedback, remark=False, details=None):
        """
        Record the result of a marking pass.

        ``details`` are merged into the metadata; an earlier marking error is
        cleared.

        Raises:
            InvalidSessionTransition: The session cannot be marked.

        """
        if not self.can_be_marked(remark=remark):
            raise InvalidSessionTransition(self.pk, self.state, self.STATES.marked)
        metadata = dict(self.metadata or {})
        metadata.pop('marking_error', None)
        metadata.pop('marking_failed_at', None)
        metadata.update(details or {})
        self._transition(
            self.STATES.marked,
            self.MARKABLE_STATES + (self.STATES.marked,),
            marked_at=now(),
            total_score=total_score,
            max_possible_score=max_possible_score,
            grade=grade,
            feedback=feedback,
            metadata=metadata,
        )

    def update_metadata(self, **values):
        """
        Merge ``values`` into the metadata and save only that field.
        """
        self.metadata = dict(self.metadata or {}, **values)
        self.save(update_fields=['metadata', 'modified'])


class QuestionResponse(TimeStampedModel):
    """
    A respondent's answer to one question.

    ``value`` holds the stored answer shape of the question type; choice
    questions record their selections as :class:`SelectedOption` rows.
    """
    session = models.ForeignKey(ResponseSession, related_name='responses', on_delete=models.CASCADE)
    question = models.ForeignKey(AssessmentQuestion, related_name='responses', on_delete=models.CASCADE)
    value = models.JSONField(default=dict, blank=True)

    class Meta:
        app_label = 'workflow'
        ordering = ['id']
        unique_together = ('session', 'question')

    def __str__(self):
        return "Response to question {} in session {}".format(self.question_id, self.session_id)

    @property
    def selected_option_ids(self):
        return [selection.option_id for selection in self.selected_options.all()]

    def normalized(self):
        """
        The answer as a ``NormalizedResponse``.
        """
        return normalize_response(
            self.question.question_type,
            self.value,
            selected_option_ids=self.selected_option_ids,
            option_texts=self.question.option_texts(),
        )


class SelectedOption(models.Model):
    """
    An option selected in answer to a choice question.
    """
    response = models.ForeignKey(QuestionResponse, related_name='selected_options', on_delete=models.CASCADE)
    option = models.ForeignKey(AssessmentQuestionOption, related_name='selections', on_delete=models.CASCADE)
    created = models.DateTimeField(default=now)

    class Meta:
        app_label = 'workflow'
        ordering = ['id']
        unique_together = ('response', 'option')

    def clean(self):
        super().clean()
        if self.option.question_id != self.response.question_id:
            raise ValidationError({'option': "The option does not belong to the answered question"})
