"""
Django models for marking schemes, their rules and the scores they produce.

A :class:`MarkingScheme` belongs to an assessment and holds one or more
:class:`MarkingRule` per question.  Marking a session writes one
:class:`ResponseScore` per applied rule (or tiered rule group).

NOTE: We use migrations, so if you make any edits to this file, you
need to then generate a matching migration for it using:

    ./manage.py makemigrations marking

"""

from decimal import Decimal
import logging

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.timezone import now

from model_utils import Choices
from model_utils.models import TimeStampedModel

from questionnaire.assessment.models import Assessment, AssessmentQuestion

from .criteria import (
    RULE_TYPES, RULE_TYPES_BY_QUESTION_TYPE, check_for_question_type, is_compatible, parse_criteria
)
from .errors import InvalidMarkingCriteria
from .rules import question_max_points, rule_max_points, to_points

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name


class MarkingScheme(TimeStampedModel):
    """
    How the responses to an assessment are scored, graded and given feedback.

    ``settings`` holds:

        grade_boundaries: Grade label to minimum percentage, scanned in
            declared order.  Either a dict or a list of ``[label, minimum]``
            pairs; use the list form on databases that reorder JSON keys.
        feedback_templates: Grade label to a feedback template.
        passing_score: Minimum percentage for a pass (optional).

    """
    assessment = models.ForeignKey(Assessment, related_name='marking_schemes', on_delete=models.CASCADE)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    is_active = models.BooleanField(default=False, db_index=True)
    activated_at = models.DateTimeField(null=True, blank=True, db_index=True)
    total_possible_score = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    settings = models.JSONField(default=dict, blank=True)

    class Meta:
        app_label = 'marking'
        ordering = ['-activated_at', '-id']

    def __str__(self):
        return self.name

    @classmethod
    def active_for_assessment(cls, assessment_id):
        """
        The active scheme of an assessment, or None.

        When several schemes are active the most recently activated one wins.
        """
        return cls.objects.filter(
            assessment_id=assessment_id, is_active=True
        ).order_by(models.F('activated_at').desc(nulls_last=True), '-id').first()

    @property
    def grade_boundaries(self):
        """
        The grade boundaries as ``(label, minimum percentage)`` pairs in declared order.
        """
        boundaries = (self.settings or {}).get('grade_boundaries') or {}
        if isinstance(boundaries, dict):
            boundaries = boundaries.items()
        parsed = []
        for label, minimum in boundaries:
            parsed.append((str(label), Decimal(str(minimum))))
        return parsed

    @property
    def feedback_templates(self):
        return (self.settings or {}).get('feedback_templates') or {}

    @property
    def passing_score(self):
        passing_score = (self.settings or {}).get('passing_score')
        return None if passing_score in (None, '') else Decimal(str(passing_score))

    def activate(self, save=True):
        self.is_active = True
        self.activated_at = now()
        if save:
            self.save(update_fields=['is_active', 'activated_at', 'modified'])
        logger.info("Activated marking scheme %s for assessment %s", self.pk, self.assessment_id)

    def deactivate(self, save=True):
        self.is_active = False
        if save:
            self.save(update_fields=['is_active', 'modified'])

    def active_rules(self):
        return list(
            self.rules.filter(is_active=True).select_related('question', 'question__section').prefetch_related(
                'question__options'
            ).order_by('question_id', 'order', 'id')
        )

    def calculate_total_possible_score(self):
        """
        Sum the declared maximum of every question that has active rules.
        """
        rules_by_question = {}
        for rule in self.active_rules():
            rules_by_question.setdefault(rule.question_id, []).append(rule)
        total = sum(
            question_max_points(rules[0].question, rules)
            for rules in rules_by_question.values()
        )
        return to_points(total)

    def update_total_possible_score(self):
        self.total_possible_score = self.calculate_total_possible_score()
        self.save(update_fields=['total_possible_score', 'modified'])
        return self.total_possible_score

    def clean(self):
        super().clean()
        try:
            boundaries = self.grade_boundaries
        except (TypeError, ValueError, ArithmeticError) as ex:
            raise ValidationError({'settings': "Grade boundaries must map labels to percentages"}) from ex
        for label, minimum in boundaries:
            if not Decimal('0') <= minimum <= Decimal('100'):
                raise ValidationError({'settings': "Boundary '{}' must be between 0 and 100".format(label)})


class MarkingRule(TimeStampedModel):
    """
    A typed scoring rule for one question of a marking scheme.
    """
    RULE_TYPE_CHOICES = Choices(*RULE_TYPES)

    scheme = models.ForeignKey(MarkingScheme, related_name='rules', on_delete=models.CASCADE)
    question = models.ForeignKey(AssessmentQuestion, related_name='marking_rules', on_delete=models.CASCADE)
    rule_type = models.CharField(max_length=32, choices=RULE_TYPE_CHOICES, db_index=True)
    points = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0'), validators=[MinValueValidator(Decimal('0'))]
    )
    criteria = models.JSONField(default=dict, blank=True)
    order = models.PositiveIntegerField(default=0, db_index=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        app_label = 'marking'
        ordering = ['order', 'id']

    def __str__(self):
        return "{} ({} pts)".format(self.rule_type, self.points)

    def parsed_criteria(self):
        """
        The typed criteria of this rule.

        Raises:
            InvalidMarkingCriteria

        """
        try:
            return parse_criteria(self.rule_type, self.criteria)
        except InvalidMarkingCriteria as ex:
            raise InvalidMarkingCriteria("Rule {}: {}".format(self.pk, ex), rule_id=self.pk) from ex

    def check_configuration(self):
        """
        Validate the rule against its question and return its typed criteria.

        Raises:
            InvalidMarkingCriteria

        """
        if not is_compatible(self.rule_type, self.question.question_type):
            raise InvalidMarkingCriteria(
                "Rule {}: '{}' cannot mark {} questions; use one of {}".format(
                    self.pk, self.rule_type, self.question.question_type,
                    ", ".join(RULE_TYPES_BY_QUESTION_TYPE.get(self.question.question_type, ()))
                ),
                rule_id=self.pk,
            )
        criteria = self.parsed_criteria()
        try:
            check_for_question_type(self.rule_type, criteria, self.question.question_type)
        except InvalidMarkingCriteria as ex:
            raise InvalidMarkingCriteria("Rule {}: {}".format(self.pk, ex), rule_id=self.pk) from ex
        return criteria

    def max_points(self, criteria=None):
        if criteria is None:
            criteria = self.parsed_criteria()
        return to_points(rule_max_points(self, criteria, self.question))

    def clean(self):
        super().clean()
        if self.question.section.assessment_id != self.scheme.assessment_id:
            raise ValidationError({'question': "The question does not belong to the scheme's assessment"})
        try:
            self.check_configuration()
        except InvalidMarkingCriteria as ex:
            raise ValidationError({'criteria': str(ex)}) from ex


class ResponseScore(TimeStampedModel):
    """
    The points one rule (or tiered rule group) awarded for one question of a
    session.  Rows are replaced as a whole when the session is marked again.
    """
    session = models.ForeignKey('workflow.ResponseSession', related_name='scores', on_delete=models.CASCADE)
    question = models.ForeignKey(AssessmentQuestion, related_name='scores', on_delete=models.CASCADE)
    response = models.ForeignKey(
        'workflow.QuestionResponse', related_name='scores', null=True, blank=True, on_delete=models.SET_NULL
    )
    scheme = models.ForeignKey(MarkingScheme, related_name='scores', on_delete=models.CASCADE)
    rule = models.ForeignKey(MarkingRule, related_name='scores', null=True, on_delete=models.SET_NULL)
    score_earned = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    max_possible_score = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    scoring_details = models.JSONField(default=dict, blank=True)
    feedback = models.TextField(blank=True, default='')

    class Meta:
        app_label = 'marking'
        ordering = ['question_id', 'id']

    def __str__(self):
        return "{}/{}".format(self.score_earned, self.max_possible_score)

    @property
    def percentage(self):
        if not self.max_possible_score:
            return Decimal('0')
        return to_points(self.score_earned * 100 / self.max_possible_score)
