"""
Django models for authored assessment content.

An :class:`Assessment` is an ordered list of :class:`AssessmentSection`
objects, each owning an ordered list of :class:`AssessmentQuestion` objects.
Sections and questions can be restricted by country and can be conditional:
they are only shown when an earlier question was answered a certain way.

NOTE: We use migrations, so if you make any edits to this file, you
need to then generate a matching migration for it using:

    ./manage.py makemigrations assessment

"""


import logging

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Prefetch

from model_utils.models import TimeStampedModel

from .conditions import VisibilityCondition
from .errors import InvalidVisibilityCondition
from .question_types import (
    CHOICE_TYPES, DEFAULT_ALLOWED_FILE_TYPES, DEFAULT_MAX_FILE_SIZE, DEFAULT_SUB_TYPES, QUESTION_TYPES,
    is_valid_sub_type
)

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name


class CountryRestrictedModel(models.Model):
    """
    Content that can be hidden from respondents in some countries.

    ``restricted_countries`` lists the ISO country codes the content is
    hidden from; an empty list means the content is available worldwide.
    """
    restricted_countries = models.JSONField(default=list, blank=True)

    class Meta:
        abstract = True

    @property
    def has_country_restrictions(self):
        return bool(self.restricted_countries)

    def accessible_to_country(self, country_code):
        """
        Check whether a respondent from ``country_code`` may see this content.

        Respondents without a known country are never restricted.
        """
        if not country_code or not self.restricted_countries:
            return True
        restricted = {code.upper() for code in self.restricted_countries}
        return country_code.upper() not in restricted

    def add_country_restriction(self, country_codes):
        codes = list(self.restricted_countries or [])
        for code in country_codes:
            if code.upper() not in codes:
                codes.append(code.upper())
        self.restricted_countries = codes

    def remove_country_restriction(self, country_codes):
        removed = {code.upper() for code in country_codes}
        self.restricted_countries = [code for code in self.restricted_countries if code not in removed]


class ConditionalModel(models.Model):
    """
    Content whose visibility depends on the answer to an earlier question.
    """
    is_conditional = models.BooleanField(default=False, db_index=True)
    visibility_conditions = models.JSONField(default=dict, blank=True)

    class Meta:
        abstract = True

    @property
    def condition(self):
        """
        The parsed visibility condition, or None for unconditional content.

        Raises:
            InvalidVisibilityCondition: The stored condition is malformed.

        """
        if not self.is_conditional:
            return None
        return VisibilityCondition.from_dict(self.visibility_conditions)

    @property
    def trigger_question_id(self):
        if not self.is_conditional or not isinstance(self.visibility_conditions, dict):
            return None
        return self.visibility_conditions.get('trigger_question_id')

    def set_condition(self, condition):
        self.is_conditional = True
        self.visibility_conditions = condition.to_dict()

    def clear_condition(self):
        self.is_conditional = False
        self.visibility_conditions = {}

    def document_position(self):
        raise NotImplementedError

    def check_trigger_precedes(self):
        """
        Verify that the trigger question comes strictly before this item.

        Raises:
            InvalidVisibilityCondition

        """
        condition = self.condition
        if condition is None:
            return
        try:
            trigger = AssessmentQuestion.objects.select_related('section').get(
                pk=condition.trigger_question_id
            )
        except AssessmentQuestion.DoesNotExist as ex:
            raise InvalidVisibilityCondition(
                "Trigger question {} does not exist".format(condition.trigger_question_id)
            ) from ex

        if trigger.section.assessment_id != self.assessment_id:
            raise InvalidVisibilityCondition("Trigger question does not belong to this assessment")

        if not trigger_precedes(trigger, self):
            raise InvalidVisibilityCondition(
                "Trigger question {} must come before the item it controls".format(trigger.pk)
            )

    def clean(self):
        super().clean()
        try:
            self.check_trigger_precedes()
        except InvalidVisibilityCondition as ex:
            raise ValidationError({'visibility_conditions': str(ex)}) from ex


def trigger_precedes(trigger, item):
    """
    Check that ``trigger`` occurs strictly earlier in document order than ``item``.

    A section can only be gated on questions of earlier sections; a question
    can be gated on earlier questions of its own section too.
    """
    if isinstance(item, AssessmentSection):
        return trigger.section.document_position() < item.document_position()
    return trigger.document_position() < item.document_position()


class Assessment(TimeStampedModel, CountryRestrictedModel):
    """
    A questionnaire authored by an administrator.
    """
    title = models.CharField(max_length=255)
    description = models.TextField(max_length=1000, blank=True, default='')
    active = models.BooleanField(default=True, db_index=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        app_label = 'assessment'
        ordering = ['-created']

    def __str__(self):
        return self.title

    @property
    def questions(self):
        return AssessmentQuestion.objects.filter(section__assessment=self)

    def ordered_sections(self):
        """
        Return the sections in document order with their questions and
        options prefetched in order.

        Returns:
            list of AssessmentSection

        """
        questions = AssessmentQuestion.objects.order_by('order', 'id').prefetch_related(
            Prefetch('options', queryset=AssessmentQuestionOption.objects.order_by('order', 'id'))
        )
        return list(
            self.sections.order_by('order', 'id').prefetch_related(
                Prefetch('questions', queryset=questions)
            )
        )


class AssessmentSection(TimeStampedModel, CountryRestrictedModel, ConditionalModel):
    """
    An ordered group of questions within an assessment.
    """
    assessment = models.ForeignKey(Assessment, related_name='sections', on_delete=models.CASCADE)
    name = models.CharField(max_length=255, blank=True, default='')
    description = models.TextField(blank=True, default='')
    order = models.PositiveIntegerField()

    class Meta:
        app_label = 'assessment'
        ordering = ['order', 'id']
        unique_together = ('assessment', 'order')

    def __str__(self):
        return self.display_name

    @property
    def display_name(self):
        return self.name or 'Section {}'.format(self.order)

    def document_position(self):
        return (self.order, self.pk or 0)

    def save(self, *args, **kwargs):
        if self.order is None:
            last = self.assessment.sections.aggregate(models.Max('order'))['order__max'] or 0
            self.order = last + 1
        if not self.name:
            self.name = 'Section {}'.format(self.order)
        super().save(*args, **kwargs)


class AssessmentQuestion(TimeStampedModel, CountryRestrictedModel, ConditionalModel):
    """
    A typed question within a section.

    ``question_type`` selects how answers are stored, normalized and marked;
    ``sub_type`` refines presentation (e.g. a rating vs. a slider range).
    """
    section = models.ForeignKey(AssessmentSection, related_name='questions', on_delete=models.CASCADE)
    text = models.TextField(max_length=1000)
    question_type = models.CharField(max_length=32, choices=QUESTION_TYPES, db_index=True)
    sub_type = models.CharField(max_length=32, blank=True, default='')
    order = models.PositiveIntegerField()
    is_required = models.BooleanField(default=False)
    meta_data = models.JSONField(default=dict, blank=True)

    class Meta:
        app_label = 'assessment'
        ordering = ['order', 'id']
        unique_together = ('section', 'order')

    def __str__(self):
        return self.text

    @property
    def assessment_id(self):
        return self.section.assessment_id

    @property
    def assessment(self):
        return self.section.assessment

    @property
    def is_choice(self):
        return self.question_type in CHOICE_TYPES

    @property
    def allowed_file_types(self):
        return self.meta_data.get('allowed_data_types') or list(DEFAULT_ALLOWED_FILE_TYPES)

    @property
    def max_file_size(self):
        return self.meta_data.get('max_file_size') or DEFAULT_MAX_FILE_SIZE

    def document_position(self):
        return self.section.document_position() + (self.order, self.pk or 0)

    def option_texts(self):
        """
        Map option ids to their text.
        """
        return {option.pk: option.text for option in self.options.all()}

    def clean(self):
        super().clean()
        if not is_valid_sub_type(self.question_type, self.sub_type):
            raise ValidationError({
                'sub_type': "'{}' is not a valid sub-type for {}".format(self.sub_type, self.question_type)
            })

    def save(self, *args, **kwargs):
        if not self.sub_type:
            self.sub_type = DEFAULT_SUB_TYPES.get(self.question_type, '')
        if self.order is None:
            last = self.section.questions.aggregate(models.Max('order'))['order__max'] or 0
            self.order = last + 1
        super().save(*args, **kwargs)


class AssessmentQuestionOption(TimeStampedModel):
    """
    A selectable answer of a choice question.

    ``points`` may be negative to penalize a wrong selection; it is None when
    the option carries no points of its own.
    """
    question = models.ForeignKey(AssessmentQuestion, related_name='options', on_delete=models.CASCADE)
    text = models.CharField(max_length=255)
    order = models.PositiveIntegerField(default=1)
    points = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    is_correct_answer = models.BooleanField(default=False)

    class Meta:
        app_label = 'assessment'
        ordering = ['order', 'id']

    def __str__(self):
        return self.text

    @property
    def has_assigned_points(self):
        return self.points is not None and self.points != 0
