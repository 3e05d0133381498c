"""
Typed criteria payloads for marking rules.

Rules store their criteria as JSON.  Before a rule is used the JSON is parsed
into the namedtuple for its rule type by :func:`parse_criteria`, which checks
required fields and value types so that scorers never read raw keys.
"""

from collections import namedtuple
import re

from questionnaire.assessment.question_types import (
    BOOLEAN_TYPE, DATE_TYPE, FILE_UPLOAD, MULTIPLE_CHOICE, RADIO, RANGE_TYPE, RICH_TEXT
)
from questionnaire.assessment.values import (
    coerce_boolean, coerce_number, coerce_option_ids, parse_date_value, parse_time_value
)

from .errors import InvalidMarkingCriteria

EXACT_MATCH = 'exact_match'
PARTIAL_MATCH = 'partial_match'
OPTION_BASED = 'option_based'
TOLERANCE_BASED = 'tolerance_based'
RANGE_BASED = 'range_based'
KEYWORD_BASED = 'keyword_based'
LENGTH_BASED = 'length_based'
FORMAT_BASED = 'format_based'
FILE_BASED = 'file_based'
SIZE_BASED = 'size_based'
TYPE_BASED = 'type_based'
STEP_BASED = 'step_based'
DATE_RANGE_BASED = 'date_range_based'
TIME_BASED = 'time_based'
OVERLAP_BASED = 'overlap_based'
STRENGTH_BASED = 'strength_based'
CONTENT_ANALYSIS = 'content_analysis'

RULE_TYPES = (
    EXACT_MATCH, OPTION_BASED, TOLERANCE_BASED, RANGE_BASED, KEYWORD_BASED, LENGTH_BASED,
    PARTIAL_MATCH, FORMAT_BASED, FILE_BASED, SIZE_BASED, TYPE_BASED, STEP_BASED, DATE_RANGE_BASED,
    TIME_BASED, OVERLAP_BASED, STRENGTH_BASED, CONTENT_ANALYSIS,
)

RULE_TYPES_BY_QUESTION_TYPE = {
    RICH_TEXT: (
        EXACT_MATCH, PARTIAL_MATCH, KEYWORD_BASED, LENGTH_BASED, FORMAT_BASED, STRENGTH_BASED, CONTENT_ANALYSIS,
    ),
    MULTIPLE_CHOICE: (OPTION_BASED,),
    RADIO: (OPTION_BASED,),
    BOOLEAN_TYPE: (OPTION_BASED,),
    RANGE_TYPE: (RANGE_BASED, TOLERANCE_BASED, STEP_BASED),
    DATE_TYPE: (DATE_RANGE_BASED, TOLERANCE_BASED, TIME_BASED, OVERLAP_BASED),
    FILE_UPLOAD: (FILE_BASED, SIZE_BASED, TYPE_BASED),
}

TEXT_FORMATS = ('email', 'url', 'phone')
LENGTH_UNITS = ('characters', 'words')
CONTENT_MEASURES = ('word_count', 'sentence_count', 'paragraph_count')


ExactMatchCriteria = namedtuple('ExactMatchCriteria', [
    'expected_values', 'case_sensitive', 'trim_whitespace', 'scoring_method', 'partial_match_threshold',
])
PartialMatchCriteria = namedtuple('PartialMatchCriteria', [
    'expected_values', 'case_sensitive', 'partial_match_threshold', 'scoring_method',
])
OptionBasedCriteria = namedtuple('OptionBasedCriteria', [
    'correct_options', 'partial_credit', 'negative_scoring', 'penalty_per_incorrect', 'minimum_score',
])
ToleranceCriteria = namedtuple('ToleranceCriteria', ['expected_value', 'tolerance', 'tolerance_type'])
RangeCriteria = namedtuple('RangeCriteria', ['min', 'max', 'inclusive', 'tolerance'])
KeywordCriteria = namedtuple('KeywordCriteria', [
    'keywords', 'case_sensitive', 'points_per_keyword', 'cap_at_points', 'scoring_method',
])
LengthCriteria = namedtuple('LengthCriteria', [
    'min_length', 'max_length', 'unit', 'partial_credit', 'points_per_word',
])
FormatCriteria = namedtuple('FormatCriteria', ['format', 'format_pattern'])
FileCriteria = namedtuple('FileCriteria', ['allowed_types', 'max_size', 'min_size'])
SizeCriteria = namedtuple('SizeCriteria', ['max_size', 'min_size'])
TypeCriteria = namedtuple('TypeCriteria', ['allowed_types'])
StepInterval = namedtuple('StepInterval', ['min', 'max', 'points'])
StepCriteria = namedtuple('StepCriteria', ['step_intervals'])
DateRangeCriteria = namedtuple('DateRangeCriteria', ['start_date', 'end_date'])
TimeCriteria = namedtuple('TimeCriteria', ['expected_time', 'time_tolerance'])
OverlapCriteria = namedtuple('OverlapCriteria', ['start_date', 'end_date', 'scoring_method'])
StrengthCriteria = namedtuple('StrengthCriteria', ['min_length'])
ContentCheck = namedtuple('ContentCheck', ['measure', 'min', 'max', 'points'])
ContentAnalysisCriteria = namedtuple('ContentAnalysisCriteria', ['checks'])


def _flag(raw, key, default=False):
    if key not in raw or raw[key] is None:
        return default
    value = coerce_boolean(raw[key])
    if value is None:
        raise InvalidMarkingCriteria("'{}' must be a boolean".format(key))
    return value


def _number(raw, key, default=None, required=False, minimum=None):
    if raw.get(key) in (None, ''):
        if required:
            raise InvalidMarkingCriteria("'{}' is required".format(key))
        return default
    value = coerce_number(raw[key])
    if value is None:
        raise InvalidMarkingCriteria("'{}' must be a number".format(key))
    if minimum is not None and value < minimum:
        raise InvalidMarkingCriteria("'{}' must be at least {}".format(key, minimum))
    return value


def _string_list(raw, key, required=False):
    values = raw.get(key)
    if values in (None, '', []):
        if required:
            raise InvalidMarkingCriteria("'{}' must list at least one value".format(key))
        return ()
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, (list, tuple)):
        raise InvalidMarkingCriteria("'{}' must be a list".format(key))
    return tuple(str(value) for value in values if value is not None)


def _threshold(raw, key, default):
    value = _number(raw, key, default=default)
    if not 0 <= value <= 1:
        raise InvalidMarkingCriteria("'{}' must be between 0 and 1".format(key))
    return value


def _date(raw, key, required=False):
    if raw.get(key) in (None, ''):
        if required:
            raise InvalidMarkingCriteria("'{}' is required".format(key))
        return None
    value = parse_date_value(raw[key])
    if value is None:
        raise InvalidMarkingCriteria("'{}' must be an ISO-8601 date".format(key))
    return value


def _expected_values(raw):
    values = list(_string_list(raw, 'expected_values'))
    if raw.get('expected_value') not in (None, ''):
        values.insert(0, str(raw['expected_value']))
    if not values:
        raise InvalidMarkingCriteria("'expected_value' or 'expected_values' is required")
    return tuple(values)


def _parse_exact_match(raw):
    return ExactMatchCriteria(
        expected_values=_expected_values(raw),
        case_sensitive=_flag(raw, 'case_sensitive'),
        trim_whitespace=_flag(raw, 'trim_whitespace', default=True),
        scoring_method=raw.get('scoring_method') or 'all_or_nothing',
        partial_match_threshold=_threshold(raw, 'partial_match_threshold', 1.0),
    )


def _parse_partial_match(raw):
    return PartialMatchCriteria(
        expected_values=_expected_values(raw),
        case_sensitive=_flag(raw, 'case_sensitive'),
        partial_match_threshold=_threshold(raw, 'partial_match_threshold', 0.7),
        scoring_method=raw.get('scoring_method') or 'all_or_nothing',
    )


def _parse_option_based(raw):
    correct_options = None
    if raw.get('correct_options') not in (None, ''):
        correct_options = coerce_option_ids(raw['correct_options'])
        if not correct_options:
            raise InvalidMarkingCriteria("'correct_options' must list option ids")
    return OptionBasedCriteria(
        correct_options=correct_options,
        partial_credit=_flag(raw, 'partial_credit') or _flag(raw, 'partial_scoring'),
        negative_scoring=_flag(raw, 'negative_scoring'),
        penalty_per_incorrect=_number(raw, 'penalty_per_incorrect', minimum=0),
        minimum_score=_number(raw, 'minimum_score', default=0.0),
    )


def _parse_tolerance(raw):
    tolerance_type = raw.get('tolerance_type') or 'absolute'
    if tolerance_type not in ('absolute', 'percentage'):
        raise InvalidMarkingCriteria("'tolerance_type' must be 'absolute' or 'percentage'")
    expected = raw.get('expected_value')
    if expected in (None, ''):
        raise InvalidMarkingCriteria("'expected_value' is required")
    if coerce_number(expected) is None and parse_date_value(expected) is None:
        raise InvalidMarkingCriteria("'expected_value' must be a number or a date")
    return ToleranceCriteria(
        expected_value=expected,
        tolerance=_number(raw, 'tolerance', default=0.0, minimum=0),
        tolerance_type=tolerance_type,
    )


def _parse_range(raw):
    low = _number(raw, 'min', required=True)
    high = _number(raw, 'max', required=True)
    if low > high:
        raise InvalidMarkingCriteria("'min' must not be greater than 'max'")
    return RangeCriteria(
        min=low,
        max=high,
        inclusive=_flag(raw, 'inclusive', default=True),
        tolerance=_number(raw, 'tolerance', default=0.0, minimum=0),
    )


def _parse_keyword(raw):
    return KeywordCriteria(
        keywords=_string_list(raw, 'keywords', required=True),
        case_sensitive=_flag(raw, 'case_sensitive'),
        points_per_keyword=_number(raw, 'points_per_keyword', minimum=0),
        cap_at_points=_flag(raw, 'cap_at_points', default=True),
        scoring_method=raw.get('scoring_method') or 'any',
    )


def _parse_length(raw):
    unit = raw.get('unit') or 'characters'
    if unit not in LENGTH_UNITS:
        raise InvalidMarkingCriteria("'unit' must be one of {}".format(", ".join(LENGTH_UNITS)))
    min_length = _number(raw, 'min_length', minimum=0)
    max_length = _number(raw, 'max_length', minimum=0)
    points_per_word = _number(raw, 'points_per_word', minimum=0)
    if min_length is None and max_length is None and points_per_word is None:
        raise InvalidMarkingCriteria("'min_length', 'max_length' or 'points_per_word' is required")
    if min_length is not None and max_length is not None and min_length > max_length:
        raise InvalidMarkingCriteria("'min_length' must not be greater than 'max_length'")
    return LengthCriteria(
        min_length=min_length,
        max_length=max_length,
        unit=unit,
        partial_credit=_flag(raw, 'partial_credit'),
        points_per_word=points_per_word,
    )


def _parse_format(raw):
    text_format = raw.get('format') or None
    if text_format is not None and text_format not in TEXT_FORMATS:
        raise InvalidMarkingCriteria("'format' must be one of {}".format(", ".join(TEXT_FORMATS)))
    pattern = raw.get('format_pattern') or None
    if pattern is not None:
        try:
            re.compile(pattern)
        except (re.error, TypeError) as ex:
            raise InvalidMarkingCriteria("'format_pattern' is not a valid regular expression") from ex
    return FormatCriteria(format=text_format, format_pattern=pattern)


def _parse_file(raw):
    file_criteria = raw.get('file_criteria', raw)
    if not isinstance(file_criteria, dict):
        raise InvalidMarkingCriteria("'file_criteria' must be a dictionary")
    return FileCriteria(
        allowed_types=_string_list(file_criteria, 'allowed_types'),
        max_size=_number(file_criteria, 'max_size', minimum=0),
        min_size=_number(file_criteria, 'min_size', minimum=0),
    )


def _parse_size(raw):
    max_size = _number(raw, 'max_size', minimum=0)
    min_size = _number(raw, 'min_size', minimum=0)
    if max_size is None and min_size is None:
        raise InvalidMarkingCriteria("'max_size' or 'min_size' is required")
    return SizeCriteria(max_size=max_size, min_size=min_size)


def _parse_type(raw):
    return TypeCriteria(allowed_types=_string_list(raw, 'allowed_types', required=True))


def _parse_step(raw):
    intervals = raw.get('step_intervals')
    if not isinstance(intervals, list) or not intervals:
        raise InvalidMarkingCriteria("'step_intervals' must list at least one interval")
    parsed = []
    for interval in intervals:
        if not isinstance(interval, dict):
            raise InvalidMarkingCriteria("Each step interval must be a dictionary")
        parsed.append(StepInterval(
            min=_number(interval, 'min', required=True),
            max=_number(interval, 'max', required=True),
            points=_number(interval, 'points', minimum=0),
        ))
    return StepCriteria(step_intervals=tuple(parsed))


def _parse_date_range(raw):
    start_date = _date(raw, 'start_date', required=True)
    end_date = _date(raw, 'end_date', required=True)
    if start_date > end_date:
        raise InvalidMarkingCriteria("'start_date' must not be after 'end_date'")
    return DateRangeCriteria(start_date=start_date, end_date=end_date)


def _parse_time(raw):
    if raw.get('expected_time') in (None, ''):
        raise InvalidMarkingCriteria("'expected_time' is required")
    expected_time = parse_time_value(raw['expected_time'])
    if expected_time is None:
        raise InvalidMarkingCriteria("'expected_time' must be a time such as '14:30'")
    return TimeCriteria(
        expected_time=expected_time,
        time_tolerance=_number(raw, 'time_tolerance', default=0.0, minimum=0),
    )


def _parse_overlap(raw):
    date_range = _parse_date_range(raw)
    scoring_method = raw.get('scoring_method') or 'all_or_nothing'
    if scoring_method not in ('all_or_nothing', 'proportional'):
        raise InvalidMarkingCriteria("'scoring_method' must be 'all_or_nothing' or 'proportional'")
    return OverlapCriteria(
        start_date=date_range.start_date, end_date=date_range.end_date, scoring_method=scoring_method
    )


def _parse_strength(raw):
    strength_criteria = raw.get('strength_criteria', raw)
    if not isinstance(strength_criteria, dict):
        raise InvalidMarkingCriteria("'strength_criteria' must be a dictionary")
    return StrengthCriteria(min_length=_number(strength_criteria, 'min_length', default=8.0, minimum=0))


def _parse_content_analysis(raw):
    checks = raw.get('content_analysis_rules')
    if not isinstance(checks, list) or not checks:
        raise InvalidMarkingCriteria("'content_analysis_rules' must list at least one check")
    parsed = []
    for check in checks:
        if not isinstance(check, dict):
            raise InvalidMarkingCriteria("Each content analysis check must be a dictionary")
        measure = check.get('type')
        if measure not in CONTENT_MEASURES:
            raise InvalidMarkingCriteria("Check 'type' must be one of {}".format(", ".join(CONTENT_MEASURES)))
        low = _number(check, 'min', default=0.0, minimum=0)
        high = _number(check, 'max', minimum=0)
        if high is not None and low > high:
            raise InvalidMarkingCriteria("'min' must not be greater than 'max'")
        parsed.append(ContentCheck(
            measure=measure, min=low, max=high, points=_number(check, 'points', required=True, minimum=0)
        ))
    return ContentAnalysisCriteria(checks=tuple(parsed))


_PARSERS = {
    EXACT_MATCH: _parse_exact_match,
    PARTIAL_MATCH: _parse_partial_match,
    OPTION_BASED: _parse_option_based,
    TOLERANCE_BASED: _parse_tolerance,
    RANGE_BASED: _parse_range,
    KEYWORD_BASED: _parse_keyword,
    LENGTH_BASED: _parse_length,
    FORMAT_BASED: _parse_format,
    FILE_BASED: _parse_file,
    SIZE_BASED: _parse_size,
    TYPE_BASED: _parse_type,
    STEP_BASED: _parse_step,
    DATE_RANGE_BASED: _parse_date_range,
    TIME_BASED: _parse_time,
    OVERLAP_BASED: _parse_overlap,
    STRENGTH_BASED: _parse_strength,
    CONTENT_ANALYSIS: _parse_content_analysis,
}


def parse_criteria(rule_type, raw):
    """
    Validate the JSON criteria of a rule and build its typed payload.

    Args:
        rule_type (str): One of ``RULE_TYPES``.
        raw (dict): The criteria as stored on the rule.

    Returns:
        namedtuple: The criteria payload for ``rule_type``.

    Raises:
        InvalidMarkingCriteria: The rule type is unknown or the criteria are
            malformed.

    """
    try:
        parser = _PARSERS[rule_type]
    except KeyError as ex:
        raise InvalidMarkingCriteria("Unknown rule type '{}'".format(rule_type)) from ex
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidMarkingCriteria("Criteria must be a dictionary")
    return parser(raw)


def is_compatible(rule_type, question_type):
    return rule_type in RULE_TYPES_BY_QUESTION_TYPE.get(question_type, ())


def check_for_question_type(rule_type, criteria, question_type):
    """
    Check criteria that only make sense for some question types.

    A tolerance on a date question is a number of days: its expected value
    must be a date and a percentage tolerance is rejected.  On any other
    question the expected value must be a number.

    Raises:
        InvalidMarkingCriteria

    """
    if rule_type != TOLERANCE_BASED:
        return
    if question_type == DATE_TYPE:
        if criteria.tolerance_type == 'percentage':
            raise InvalidMarkingCriteria("A date tolerance is a number of days; 'percentage' is not supported")
        if parse_date_value(criteria.expected_value) is None:
            raise InvalidMarkingCriteria("'expected_value' must be a date")
    elif coerce_number(criteria.expected_value) is None:
        raise InvalidMarkingCriteria("'expected_value' must be a number")


def is_additive(rule_type, criteria):
    """
    Additive rules add to the question's score; all other rules are tiers of
    which only the first matching one counts.
    """
    if rule_type == KEYWORD_BASED:
        return True
    return rule_type == LENGTH_BASED and criteria.points_per_word is not None
