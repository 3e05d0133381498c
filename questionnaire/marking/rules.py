"""
The marking rule engine.

Each rule type has a scorer that compares one normalized response with the
rule's typed criteria.  :func:`grade_question` combines the rules of a
question: tiered rules are tried in order and only the first matching one
counts, while additive rules each add their own points.
"""

from collections import namedtuple
from decimal import ROUND_HALF_UP, Decimal
import logging
import re

from django.core.exceptions import ValidationError
from django.core.validators import EmailValidator, URLValidator

from questionnaire.assessment.question_types import DATE_TYPE
from questionnaire.assessment.values import (
    coerce_number, parse_date_value, parse_time_value, seconds_since_midnight
)

from . import criteria as rule_criteria
from .errors import InvalidMarkingCriteria, ResponseGradingError

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

PHONE_PATTERN = re.compile(r'^\+?[\d\s\-\(\)]*\d[\d\s\-\(\)]*$')
WORD_PATTERN = re.compile(r'\w+', re.UNICODE)
SENTENCE_END_PATTERN = re.compile(r'[.!?]+')
PARAGRAPH_BREAK_PATTERN = re.compile(r'\n\s*\n')

TWO_PLACES = Decimal('0.01')


RuleOutcome = namedtuple('RuleOutcome', ['matched', 'points_earned', 'details', 'feedback'])

ScoreRecord = namedtuple('ScoreRecord', ['rule', 'points_earned', 'points_possible', 'details', 'feedback'])


def to_points(value):
    """
    Convert a score to a Decimal with two decimal places.
    """
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def words(text):
    return WORD_PATTERN.findall(text or '')


def word_similarity(first, second):
    """
    Jaccard similarity of the word sets of two strings, between 0 and 1.
    """
    first_words, second_words = set(words(first)), set(words(second))
    if not first_words or not second_words:
        return 0.0
    return len(first_words & second_words) / float(len(first_words | second_words))


def _prepare_text(text, case_sensitive, trim_whitespace=True):
    text = text or ''
    if trim_whitespace:
        text = text.strip()
    if not case_sensitive:
        text = text.lower()
    return text


def _no_match(**details):
    return RuleOutcome(False, 0.0, details, '')


def score_exact_match(points, criteria, response, question):
    answer = _prepare_text(response.comparable_text(), criteria.case_sensitive, criteria.trim_whitespace)
    expected = [
        _prepare_text(value, criteria.case_sensitive, criteria.trim_whitespace)
        for value in criteria.expected_values
    ]
    if answer in expected:
        return RuleOutcome(True, points, {'matched_value': answer}, '')

    if criteria.scoring_method == 'proportional':
        similarity = max(word_similarity(answer, value) for value in expected)
        if similarity >= criteria.partial_match_threshold:
            return RuleOutcome(True, round(points * similarity, 2), {'similarity': round(similarity, 4)}, '')
        return _no_match(similarity=round(similarity, 4))
    return _no_match()


def score_partial_match(points, criteria, response, question):
    answer = _prepare_text(response.comparable_text(), criteria.case_sensitive)
    similarity = max(
        word_similarity(answer, _prepare_text(value, criteria.case_sensitive))
        for value in criteria.expected_values
    )
    details = {'similarity': round(similarity, 4), 'threshold': criteria.partial_match_threshold}
    if similarity < criteria.partial_match_threshold:
        return _no_match(**details)
    if criteria.scoring_method == 'proportional':
        return RuleOutcome(True, round(similarity * points, 2), details, '')
    return RuleOutcome(True, points, details, '')


def _option_max(points, criteria, question):
    if points > 0:
        return points
    correct_ids = set(criteria.correct_options or ())
    return sum(
        float(option.points) for option in question.options.all()
        if (option.is_correct_answer or option.pk in correct_ids) and option.points is not None and option.points > 0
    )


def score_option_based(points, criteria, response, question):
    options = {option.pk: option for option in question.options.all()}
    chosen = {option_id for option_id in response.selected_option_ids if option_id in options}

    if criteria.correct_options is not None:
        correct = set(criteria.correct_options)
        correct_chosen = chosen & correct
        incorrect_chosen = chosen - correct
        if criteria.partial_credit:
            earned = points * len(correct_chosen) / float(len(correct))
        else:
            earned = points if chosen == correct else 0.0
        if criteria.negative_scoring and incorrect_chosen:
            penalty = criteria.penalty_per_incorrect
            if penalty is None:
                penalty = points / float(len(correct))
            earned -= penalty * len(incorrect_chosen)
        details = {
            'selected_option_ids': sorted(chosen),
            'correct_selected': len(correct_chosen),
            'incorrect_selected': len(incorrect_chosen),
            'correct_total': len(correct),
        }
    else:
        earned = 0.0
        for option_id in sorted(chosen):
            option = options[option_id]
            if option.is_correct_answer:
                earned += float(option.points) if option.has_assigned_points else points
            elif criteria.negative_scoring and option.points is not None and option.points < 0:
                earned += float(option.points)
        details = {'selected_option_ids': sorted(chosen)}

    earned = max(earned, criteria.minimum_score)
    return RuleOutcome(earned > 0, round(earned, 2), details, '')


def score_tolerance_based(points, criteria, response, question):
    if question.question_type == DATE_TYPE:
        answer = parse_date_value(response.date)
        expected = parse_date_value(criteria.expected_value)
        if answer is None or expected is None:
            return _no_match(reason='unparseable date')
        difference = abs((answer - expected).days)
        allowed = criteria.tolerance
    else:
        answer = response.number
        expected = coerce_number(criteria.expected_value)
        if answer is None or expected is None:
            return _no_match(reason='unparseable number')
        difference = abs(answer - expected)
        allowed = criteria.tolerance
        if criteria.tolerance_type == 'percentage':
            allowed = abs(expected) * criteria.tolerance / 100.0

    details = {'difference': difference, 'allowed': allowed}
    if difference <= allowed:
        return RuleOutcome(True, points, details, '')
    return _no_match(**details)


def score_range_based(points, criteria, response, question):
    value = response.number
    if value is None:
        return _no_match(reason='unparseable number')
    low, high = criteria.min - criteria.tolerance, criteria.max + criteria.tolerance
    if criteria.inclusive:
        within = low <= value <= high
    else:
        within = low < value < high
    details = {'value': value, 'min': low, 'max': high}
    if within:
        return RuleOutcome(True, points, details, '')
    return _no_match(**details)


def score_keyword_based(points, criteria, response, question):
    text = _prepare_text(response.comparable_text(), criteria.case_sensitive)
    found = [
        keyword for keyword in criteria.keywords
        if _prepare_text(keyword, criteria.case_sensitive) in text
    ]

    if criteria.points_per_keyword is not None:
        earned = len(found) * criteria.points_per_keyword
        if criteria.cap_at_points:
            earned = min(earned, points)
    elif criteria.scoring_method == 'proportional':
        earned = points * len(found) / float(len(criteria.keywords))
    else:
        earned = points if found else 0.0

    details = {'keywords_found': found, 'keywords_total': len(criteria.keywords)}
    return RuleOutcome(bool(found), round(earned, 2), details, '')


def score_length_based(points, criteria, response, question):
    text = (response.text or '').strip()
    word_count = len(words(text))

    if criteria.points_per_word is not None:
        earned = min(word_count * criteria.points_per_word, points)
        return RuleOutcome(earned > 0, round(earned, 2), {'length': word_count, 'unit': 'words'}, '')

    length = word_count if criteria.unit == 'words' else len(text)
    details = {'length': length, 'unit': criteria.unit}
    too_short = criteria.min_length is not None and length < criteria.min_length
    too_long = criteria.max_length is not None and length > criteria.max_length
    if not too_short and not too_long:
        return RuleOutcome(True, points, details, '')
    if too_short and criteria.partial_credit and criteria.min_length:
        earned = round(points * length / float(criteria.min_length), 2)
        return RuleOutcome(earned > 0, earned, details, '')
    return _no_match(**details)


def _matches_format(text_format, text):
    if text_format == 'phone':
        return bool(PHONE_PATTERN.match(text))
    validator = EmailValidator() if text_format == 'email' else URLValidator(schemes=['http', 'https'])
    try:
        validator(text)
    except ValidationError:
        return False
    return True


def score_format_based(points, criteria, response, question):
    text = (response.comparable_text() or '').strip()
    text_format = criteria.format
    if text_format is None and question.sub_type in rule_criteria.TEXT_FORMATS:
        text_format = question.sub_type

    if text_format is not None:
        matched = _matches_format(text_format, text)
        details = {'format': text_format}
    elif criteria.format_pattern:
        matched = re.search(criteria.format_pattern, text) is not None
        details = {'format_pattern': criteria.format_pattern}
    else:
        return _no_match(reason='no format configured')

    if matched:
        return RuleOutcome(True, points, details, '')
    return _no_match(**details)


def _check_size(size, max_size, min_size):
    if max_size is None and min_size is None:
        return True
    if size is None:
        return False
    if max_size is not None and size > max_size:
        return False
    return min_size is None or size >= min_size


def score_file_based(points, criteria, response, question):
    uploaded = response.file
    details = {'content_type': uploaded.content_type, 'size': uploaded.size}
    if criteria.allowed_types and uploaded.content_type not in criteria.allowed_types:
        return _no_match(reason='type not allowed', **details)
    if not _check_size(uploaded.size, criteria.max_size, criteria.min_size):
        return _no_match(reason='size out of bounds', **details)
    return RuleOutcome(True, points, details, '')


def score_size_based(points, criteria, response, question):
    size = response.file.size
    if _check_size(size, criteria.max_size, criteria.min_size):
        return RuleOutcome(True, points, {'size': size}, '')
    return _no_match(size=size)


def score_type_based(points, criteria, response, question):
    content_type = response.file.content_type
    if content_type in criteria.allowed_types:
        return RuleOutcome(True, points, {'content_type': content_type}, '')
    return _no_match(content_type=content_type)


def score_step_based(points, criteria, response, question):
    value = response.number
    if value is None:
        return _no_match(reason='unparseable number')
    for index, interval in enumerate(criteria.step_intervals):
        if interval.min <= value <= interval.max:
            earned = interval.points if interval.points is not None else points
            return RuleOutcome(earned > 0, earned, {'value': value, 'interval': index}, '')
    return _no_match(value=value)


def score_date_range_based(points, criteria, response, question):
    answer = parse_date_value(response.date)
    if answer is None:
        return _no_match(reason='unparseable date')
    details = {'date': answer.isoformat()}
    if criteria.start_date <= answer <= criteria.end_date:
        return RuleOutcome(True, points, details, '')
    return _no_match(**details)


def score_time_based(points, criteria, response, question):
    """
    Full points when the answered time of day is within ``time_tolerance``
    seconds of ``expected_time``.
    """
    answer = parse_time_value(response.date)
    if answer is None:
        return _no_match(reason='unparseable time')
    difference = abs(seconds_since_midnight(answer) - seconds_since_midnight(criteria.expected_time))
    details = {'time': answer.isoformat(), 'difference': difference, 'allowed': criteria.time_tolerance}
    if difference <= criteria.time_tolerance:
        return RuleOutcome(True, points, details, '')
    return _no_match(**details)


def score_overlap_based(points, criteria, response, question):
    """
    Score an answered period against the expected period.

    Any overlap earns full points, or with ``scoring_method: proportional``
    the share of the expected period's days that the answer covers.  Both
    periods include their first and last day.
    """
    start, end = parse_date_value(response.date), parse_date_value(response.end_date)
    if start is None or end is None or start > end:
        return _no_match(reason='not a date range')

    overlap_start, overlap_end = max(start, criteria.start_date), min(end, criteria.end_date)
    if overlap_start > overlap_end:
        return _no_match(overlap_days=0)

    overlap_days = (overlap_end - overlap_start).days + 1
    expected_days = (criteria.end_date - criteria.start_date).days + 1
    details = {'overlap_days': overlap_days, 'expected_days': expected_days}
    if criteria.scoring_method == 'proportional':
        return RuleOutcome(True, round(points * overlap_days / float(expected_days), 2), details, '')
    return RuleOutcome(True, points, details, '')


def score_strength_based(points, criteria, response, question):
    """
    A quarter of the points each for length, an upper case letter, a lower
    case letter and a digit.
    """
    text = response.text or ''
    checks = {
        'length': len(text) >= criteria.min_length,
        'uppercase': any(char.isupper() for char in text),
        'lowercase': any(char.islower() for char in text),
        'digit': any(char.isdigit() for char in text),
    }
    earned = round(points * sum(checks.values()) / 4.0, 2)
    return RuleOutcome(earned > 0, earned, {'checks': checks}, '')


def _content_measures(text):
    return {
        'word_count': len(text.split()),
        'sentence_count': len([part for part in SENTENCE_END_PATTERN.split(text) if part.strip()]),
        'paragraph_count': len([part for part in PARAGRAPH_BREAK_PATTERN.split(text) if part.strip()]),
    }


def score_content_analysis(points, criteria, response, question):
    """
    Add the points of every content check whose count lies within its bounds.
    """
    measures = _content_measures((response.text or '').strip())
    earned, passed = 0.0, []
    for index, check in enumerate(criteria.checks):
        value = measures[check.measure]
        if value >= check.min and (check.max is None or value <= check.max):
            earned += check.points
            passed.append(index)
    details = dict(measures, passed_checks=passed)
    return RuleOutcome(earned > 0, round(earned, 2), details, '')


SCORERS = {
    rule_criteria.EXACT_MATCH: score_exact_match,
    rule_criteria.PARTIAL_MATCH: score_partial_match,
    rule_criteria.OPTION_BASED: score_option_based,
    rule_criteria.TOLERANCE_BASED: score_tolerance_based,
    rule_criteria.RANGE_BASED: score_range_based,
    rule_criteria.KEYWORD_BASED: score_keyword_based,
    rule_criteria.LENGTH_BASED: score_length_based,
    rule_criteria.FORMAT_BASED: score_format_based,
    rule_criteria.FILE_BASED: score_file_based,
    rule_criteria.SIZE_BASED: score_size_based,
    rule_criteria.TYPE_BASED: score_type_based,
    rule_criteria.STEP_BASED: score_step_based,
    rule_criteria.DATE_RANGE_BASED: score_date_range_based,
    rule_criteria.TIME_BASED: score_time_based,
    rule_criteria.OVERLAP_BASED: score_overlap_based,
    rule_criteria.STRENGTH_BASED: score_strength_based,
    rule_criteria.CONTENT_ANALYSIS: score_content_analysis,
}


def rule_max_points(rule, criteria, question):
    """
    The most a single rule can award for ``question``.
    """
    points = float(rule.points)
    if rule.rule_type == rule_criteria.OPTION_BASED:
        return _option_max(points, criteria, question)
    if rule.rule_type == rule_criteria.KEYWORD_BASED:
        if criteria.points_per_keyword is not None and not criteria.cap_at_points:
            return criteria.points_per_keyword * len(criteria.keywords)
    if rule.rule_type == rule_criteria.STEP_BASED:
        return max([points] + [
            interval.points for interval in criteria.step_intervals if interval.points is not None
        ])
    if rule.rule_type == rule_criteria.CONTENT_ANALYSIS:
        return sum(check.points for check in criteria.checks)
    return points


def question_max_points(question, rules, criteria_by_rule=None):
    """
    The declared maximum of a question: the best tiered rule plus every
    additive rule.
    """
    criteria_by_rule = criteria_by_rule or {}
    tier_max, additive_max = 0.0, 0.0
    for rule in rules:
        criteria = criteria_by_rule.get(rule.pk) or rule_criteria.parse_criteria(rule.rule_type, rule.criteria)
        maximum = rule_max_points(rule, criteria, question)
        if rule_criteria.is_additive(rule.rule_type, criteria):
            additive_max += maximum
        else:
            tier_max = max(tier_max, maximum)
    return tier_max + additive_max


def _feedback(earned, possible):
    if possible > 0 and earned >= possible:
        return 'Full marks'
    if earned > 0:
        return 'Partial credit'
    return 'No credit'


def _apply(rule, criteria, response, question):
    scorer = SCORERS.get(rule.rule_type)
    if scorer is None:
        raise InvalidMarkingCriteria("Unknown rule type '{}'".format(rule.rule_type), rule_id=rule.pk)
    try:
        outcome = scorer(float(rule.points), criteria, response, question)
    except Exception as ex:
        msg = "Rule {} failed on question {}".format(rule.pk, question.pk)
        logger.exception(msg)
        raise ResponseGradingError(msg) from ex
    return outcome


def _record(rule, outcome, possible):
    earned = min(outcome.points_earned, possible)
    details = dict(outcome.details, rule_type=rule.rule_type, matched=outcome.matched)
    return ScoreRecord(
        rule=rule,
        points_earned=to_points(earned),
        points_possible=to_points(possible),
        details=details,
        feedback=outcome.feedback or _feedback(earned, possible),
    )


def grade_question(question, rules, response, criteria_by_rule=None):
    """
    Apply the rules of one question to a respondent's answer.

    Args:
        question (AssessmentQuestion): The question being marked.
        rules (list of MarkingRule): The active rules for the question.
        response (NormalizedResponse or None): The answer, or None when the
            question was not answered.

    Keyword Arguments:
        criteria_by_rule (dict): Rule id to parsed criteria, to avoid parsing
            the criteria again.

    Returns:
        list of ScoreRecord: One record for the tiered rules and one per
        additive rule.  The ``points_possible`` of the records add up to the
        question's declared maximum whether or not it was answered.

    Raises:
        InvalidMarkingCriteria: A rule's criteria are malformed.
        ResponseGradingError: A rule could not be applied to the answer.

    """
    criteria_by_rule = dict(criteria_by_rule or {})
    rules = sorted(rules, key=lambda rule: (rule.order, rule.pk))
    for rule in rules:
        if rule.pk not in criteria_by_rule:
            criteria_by_rule[rule.pk] = rule_criteria.parse_criteria(rule.rule_type, rule.criteria)

    answered = response is not None and response.is_answered
    unanswered = RuleOutcome(False, 0.0, {'answered': False}, '')

    tiered = [rule for rule in rules if not rule_criteria.is_additive(rule.rule_type, criteria_by_rule[rule.pk])]
    additive = [rule for rule in rules if rule_criteria.is_additive(rule.rule_type, criteria_by_rule[rule.pk])]

    records = []
    if tiered:
        maxima = [rule_max_points(rule, criteria_by_rule[rule.pk], question) for rule in tiered]
        tier_max = max(maxima)
        chosen, outcome = None, unanswered
        if answered:
            for rule in tiered:
                candidate = _apply(rule, criteria_by_rule[rule.pk], response, question)
                if candidate.matched:
                    chosen, outcome = rule, candidate
                    break
            else:
                outcome = RuleOutcome(False, 0.0, {'answered': True}, '')
        if chosen is None:
            chosen = tiered[maxima.index(tier_max)]
        records.append(_record(chosen, outcome, tier_max))

    for rule in additive:
        criteria = criteria_by_rule[rule.pk]
        outcome = _apply(rule, criteria, response, question) if answered else unanswered
        records.append(_record(rule, outcome, rule_max_points(rule, criteria, question)))

    return records
