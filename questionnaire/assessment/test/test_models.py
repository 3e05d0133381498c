"""
Tests for the assessment content models.
"""

from django.core.exceptions import ValidationError
from pytest import raises

from questionnaire.assessment.conditions import VisibilityCondition
from questionnaire.assessment.errors import InvalidVisibilityCondition
from questionnaire.assessment.question_types import DATE_TYPE, FILE_UPLOAD, RANGE_TYPE, RICH_TEXT
from questionnaire.test_utils import CacheResetTest
from questionnaire.tests.factories import AssessmentFactory, OptionFactory, QuestionFactory, SectionFactory


class AssessmentModelsTest(CacheResetTest):

    def test_sections_and_questions_are_appended(self):
        assessment = AssessmentFactory()
        first = SectionFactory(assessment=assessment)
        second = SectionFactory(assessment=assessment)
        self.assertEqual((first.order, second.order), (1, 2))
        self.assertEqual(second.name, 'Section 2')

        q1 = QuestionFactory(section=second)
        q2 = QuestionFactory(section=second)
        self.assertEqual((q1.order, q2.order), (1, 2))
        self.assertEqual(q1.assessment_id, assessment.pk)

    def test_default_sub_type(self):
        self.assertEqual(QuestionFactory(question_type=RANGE_TYPE).sub_type, 'slider')
        self.assertEqual(QuestionFactory(question_type=DATE_TYPE).sub_type, 'date')
        self.assertEqual(QuestionFactory(question_type=RICH_TEXT).sub_type, '')

    def test_invalid_sub_type(self):
        question = QuestionFactory(question_type=RICH_TEXT)
        question.sub_type = 'slider'
        with raises(ValidationError):
            question.full_clean()

    def test_ordered_sections(self):
        assessment = AssessmentFactory()
        late = SectionFactory(assessment=assessment, order=5)
        early = SectionFactory(assessment=assessment, order=2)
        question = QuestionFactory(section=early)
        OptionFactory(question=question, order=2, text='second')
        OptionFactory(question=question, order=1, text='first')

        sections = assessment.ordered_sections()
        self.assertEqual(sections, [early, late])
        self.assertEqual(
            [option.text for option in sections[0].questions.all()[0].options.all()],
            ['first', 'second']
        )

    def test_file_defaults(self):
        question = QuestionFactory(question_type=FILE_UPLOAD)
        self.assertIn('application/pdf', question.allowed_file_types)
        self.assertEqual(question.max_file_size, 10 * 1024 * 1024)

        question.meta_data = {'allowed_data_types': ['image/png'], 'max_file_size': 100}
        self.assertEqual(question.allowed_file_types, ['image/png'])
        self.assertEqual(question.max_file_size, 100)

    def test_country_restrictions(self):
        section = SectionFactory()
        self.assertFalse(section.has_country_restrictions)
        section.add_country_restriction(['gb', 'FR', 'GB'])
        self.assertEqual(section.restricted_countries, ['GB', 'FR'])
        self.assertFalse(section.accessible_to_country('gb'))
        self.assertTrue(section.accessible_to_country('DE'))
        self.assertTrue(section.accessible_to_country(None))

        section.remove_country_restriction(['gb'])
        self.assertEqual(section.restricted_countries, ['FR'])

    def test_option_points(self):
        self.assertFalse(OptionFactory(points=None).has_assigned_points)
        self.assertFalse(OptionFactory(points=0).has_assigned_points)
        self.assertTrue(OptionFactory(points=-1).has_assigned_points)


class ConditionValidationTest(CacheResetTest):

    def setUp(self):
        super().setUp()
        self.assessment = AssessmentFactory()
        self.s1 = SectionFactory(assessment=self.assessment)
        self.s2 = SectionFactory(assessment=self.assessment)
        self.q1 = QuestionFactory(section=self.s1)
        self.q2 = QuestionFactory(section=self.s2)

    def condition_on(self, question):
        return VisibilityCondition(question.pk, 'value_equals', ('x',), 'equals')

    def test_valid_condition(self):
        self.q2.set_condition(self.condition_on(self.q1))
        self.q2.full_clean()
        self.s2.set_condition(self.condition_on(self.q1))
        self.s2.full_clean()

    def test_forward_trigger(self):
        self.q1.set_condition(self.condition_on(self.q2))
        with raises(InvalidVisibilityCondition):
            self.q1.check_trigger_precedes()
        with raises(ValidationError):
            self.q1.full_clean()

    def test_section_cannot_depend_on_own_question(self):
        self.s2.set_condition(self.condition_on(self.q2))
        with raises(ValidationError):
            self.s2.full_clean()

    def test_trigger_from_other_assessment(self):
        self.q2.set_condition(self.condition_on(QuestionFactory()))
        with raises(InvalidVisibilityCondition):
            self.q2.check_trigger_precedes()

    def test_malformed_condition(self):
        self.q2.is_conditional = True
        self.q2.visibility_conditions = {'trigger_question_id': self.q1.pk}
        with raises(InvalidVisibilityCondition):
            _ = self.q2.condition
        self.assertEqual(self.q2.trigger_question_id, self.q1.pk)

    def test_clear_condition(self):
        self.q2.set_condition(self.condition_on(self.q1))
        self.q2.clear_condition()
        self.assertIsNone(self.q2.condition)
        self.assertIsNone(self.q2.trigger_question_id)
