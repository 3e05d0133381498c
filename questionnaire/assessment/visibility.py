"""
Resolve which sections and questions a respondent can see.

Visibility is resolved in a single pass over the assessment in document
order.  A section is shown when the respondent's country may access it and its
condition holds; questions of a hidden section are always hidden.  A trigger
question's answer only counts when the trigger itself was resolved visible
earlier in the pass, so answers left behind by a question that has since been
hidden never open anything.
"""

import logging

from .conditions import evaluate
from .errors import InvalidVisibilityCondition

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name


class VisibilityResolver:
    """
    Computes the visible subset of an assessment for one respondent.

    Args:
        sections (iterable): Sections in document order.  Each section exposes
            its questions, in order, through ``section.questions.all()``.
        responses (dict): Question id to ``NormalizedResponse``.

    Keyword Arguments:
        country_code (str): The respondent's country, if known.

    """

    def __init__(self, sections, responses, country_code=None):
        self.sections = list(sections)
        self.responses = responses or {}
        self.country_code = country_code

        self._questions_by_section = {}
        self._positions = {}
        self._document_order = []
        for section_index, section in enumerate(self.sections):
            questions = list(section.questions.all())
            self._questions_by_section[section.pk] = questions
            for question_index, question in enumerate(questions):
                self._positions[question.pk] = (section_index, question_index)
                self._document_order.append(question)

        self._section_visibility = {}
        self._question_visibility = {}
        self._resolve()

    def _resolve(self):
        for section_index, section in enumerate(self.sections):
            section_visible = (
                section.accessible_to_country(self.country_code) and
                self._condition_holds(section, lambda position, index=section_index: position[0] < index)
            )
            self._section_visibility[section.pk] = section_visible

            for question_index, question in enumerate(self._questions_by_section[section.pk]):
                here = (section_index, question_index)
                self._question_visibility[question.pk] = section_visible and (
                    question.accessible_to_country(self.country_code) and
                    self._condition_holds(question, lambda position, here=here: position < here)
                )

    def _condition_holds(self, item, precedes):
        try:
            condition = item.condition
        except InvalidVisibilityCondition as ex:
            logger.warning(
                "Hiding %s %s: invalid visibility condition (%s)",
                type(item).__name__, item.pk, ex
            )
            return False

        if condition is None:
            return True

        trigger_id = condition.trigger_question_id
        position = self._positions.get(trigger_id)
        if position is None:
            logger.warning(
                "Hiding %s %s: trigger question %s is not part of this assessment",
                type(item).__name__, item.pk, trigger_id
            )
            return False
        if not precedes(position):
            logger.warning(
                "Hiding %s %s: trigger question %s does not come before it",
                type(item).__name__, item.pk, trigger_id
            )
            return False

        if not self._question_visibility.get(trigger_id):
            return False
        return evaluate(condition, self.responses.get(trigger_id))

    def is_section_visible(self, section_id):
        return self._section_visibility.get(section_id, False)

    def is_question_visible(self, question_id):
        return self._question_visibility.get(question_id, False)

    def visible_sections(self):
        """
        Visible sections, in document order.
        """
        return [section for section in self.sections if self._section_visibility[section.pk]]

    def visible_questions(self):
        """
        Visible questions across all sections, in document order.
        """
        return [question for question in self._document_order if self._question_visibility[question.pk]]

    def visible_questions_in_section(self, section_id):
        return [
            question for question in self._questions_by_section.get(section_id, [])
            if self._question_visibility[question.pk]
        ]

    def next_visible_question(self, question_id):
        """
        The first visible question after ``question_id``, or None.
        """
        return self._neighbour(self.visible_questions(), self._positions, question_id, 1)

    def previous_visible_question(self, question_id):
        return self._neighbour(self.visible_questions(), self._positions, question_id, -1)

    def next_visible_section(self, section_id):
        return self._neighbour(self.visible_sections(), self._section_positions(), section_id, 1)

    def previous_visible_section(self, section_id):
        return self._neighbour(self.visible_sections(), self._section_positions(), section_id, -1)

    def _section_positions(self):
        return {section.pk: index for index, section in enumerate(self.sections)}

    @staticmethod
    def _neighbour(visible, positions, item_id, step):
        if item_id not in positions:
            return None
        current = positions[item_id]
        candidates = visible if step > 0 else reversed(visible)
        for item in candidates:
            position = positions[item.pk]
            if (step > 0 and position > current) or (step < 0 and position < current):
                return item
        return None

    def unanswered_required_questions(self):
        """
        Visible, required questions without an answered response.
        """
        missing = []
        for question in self.visible_questions():
            if not question.is_required:
                continue
            response = self.responses.get(question.pk)
            if response is None or not response.is_answered:
                missing.append(question)
        return missing

    def completion_stats(self):
        """
        Progress of the respondent through the visible questions.

        Returns:
            dict with keys ``total_questions``, ``answered_questions``,
            ``required_questions``, ``answered_required_questions`` and
            ``completion_percentage``.

        """
        visible = self.visible_questions()
        answered = [
            question for question in visible
            if question.pk in self.responses and self.responses[question.pk].is_answered
        ]
        required = [question for question in visible if question.is_required]
        answered_required = [question for question in answered if question.is_required]
        percentage = round(len(answered) * 100.0 / len(visible), 2) if visible else 0.0
        return {
            'total_questions': len(visible),
            'answered_questions': len(answered),
            'required_questions': len(required),
            'answered_required_questions': len(answered_required),
            'completion_percentage': percentage,
        }
