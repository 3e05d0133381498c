"""
Canonical shapes of respondent answers.

Every question type stores its answer differently (option selections, a JSON
value with type-specific keys, uploaded file metadata).  Before an answer is
used to evaluate a visibility condition or a marking rule it is normalized
into a :class:`NormalizedResponse`, so that the evaluators never have to look
at raw storage keys.
"""

from collections import namedtuple
import datetime
import math
import re

from django.utils.dateparse import parse_date, parse_datetime, parse_time

from .question_types import BOOLEAN_TYPE, CHOICE_TYPES, DATE_TYPE, FILE_UPLOAD, RANGE_TYPE

# Keys tried, in priority order, when reading a number from a range answer.
NUMBER_KEYS = ('number', 'rating', 'range', 'value')

# Keys tried, in priority order, when reading a date answer.
DATE_KEYS = ('date', 'datetime', 'year', 'start_date', 'time')

TRUE_STRINGS = frozenset(['true', 'yes', 'y', '1', 'on'])
FALSE_STRINGS = frozenset(['false', 'no', 'n', '0', 'off'])

YEAR_MONTH_PATTERN = re.compile(r"^(\d{4})(?:-(\d{2}))?$")


FileValue = namedtuple('FileValue', ['filename', 'content_type', 'size'])


class NormalizedResponse(namedtuple('NormalizedResponse', [
    'question_type',
    'selected_option_ids',
    'text',
    'number',
    'boolean',
    'date',
    'end_date',
    'file',
])):
    """
    A respondent's answer reduced to the canonical shape of its question type.

    Only the fields relevant to the question type are populated; the others
    are ``None`` (``selected_option_ids`` is always a tuple).  A date answer
    that covers a period keeps its start in ``date`` and its end in
    ``end_date``.
    """
    __slots__ = ()

    @property
    def is_answered(self):
        """
        True if the answer carries a non-empty value for its question type.
        """
        if self.question_type in CHOICE_TYPES:
            return bool(self.selected_option_ids) or (
                self.question_type == BOOLEAN_TYPE and self.boolean is not None
            )
        if self.question_type == RANGE_TYPE:
            return self.number is not None
        if self.question_type == DATE_TYPE:
            return bool(self.date)
        if self.question_type == FILE_UPLOAD:
            return self.file is not None
        return bool(self.text and self.text.strip())

    def comparable_text(self):
        """
        The answer as text, falling back to the stringified number.
        """
        if self.text is not None:
            return self.text
        if self.number is not None:
            return format_number(self.number)
        if self.date is not None:
            return self.date
        return ''


def format_number(number):
    """
    Render a float without a trailing ``.0`` for integral values.
    """
    if float(number).is_integer():
        return str(int(number))
    return str(number)


def coerce_number(value):
    """
    Parse ``value`` as a finite float, or return None.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_boolean(value):
    """
    Interpret ``value`` as a boolean, or return None if it is not one.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    return None


def coerce_option_ids(values):
    """
    Convert a list of option identifiers to a sorted tuple of distinct ints.

    Values that are not integers (or zero) are dropped.
    """
    if values is None:
        return ()
    if not isinstance(values, (list, tuple, set, frozenset)):
        values = [values]
    option_ids = set()
    for value in values:
        try:
            option_id = int(str(value).strip())
        except (TypeError, ValueError):
            continue
        if option_id:
            option_ids.add(option_id)
    return tuple(sorted(option_ids))


def _first_present(value, keys):
    for key in keys:
        if key in value and value[key] not in (None, ''):
            return value[key]
    return None


def _normalize_file(value):
    if not isinstance(value, dict):
        return None
    data = value.get('file', value)
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict):
        return None
    filename = data.get('filename') or data.get('name')
    content_type = data.get('content_type')
    size = coerce_number(data.get('size'))
    if filename is None and content_type is None and size is None:
        return None
    return FileValue(
        filename=filename,
        content_type=content_type,
        size=int(size) if size is not None else None,
    )


def normalize_response(question_type, value, selected_option_ids=(), option_texts=None):
    """
    Normalize a stored answer into a :class:`NormalizedResponse`.

    Args:
        question_type (str): One of the values in ``QUESTION_TYPES``.
        value (dict or scalar): The JSON value stored for the answer.

    Keyword Arguments:
        selected_option_ids (iterable): Option ids selected for choice questions.
        option_texts (dict): Option id to option text, used to derive the
            boolean of a ``BooleanType`` answer from its selected option.

    Returns:
        NormalizedResponse

    """
    selected = ()
    text = number = boolean = date = end_date = file_value = None

    if question_type in CHOICE_TYPES:
        selected = coerce_option_ids(selected_option_ids)
        if not selected and isinstance(value, dict):
            selected = coerce_option_ids(value.get('selected_option_ids'))
        if question_type == BOOLEAN_TYPE:
            if isinstance(value, dict):
                boolean = coerce_boolean(_first_present(value, ('boolean', 'value')))
            elif value is not None and not isinstance(value, (list, dict)):
                boolean = coerce_boolean(value)
            if boolean is None and selected and option_texts:
                boolean = coerce_boolean(option_texts.get(selected[0]))
    elif question_type == RANGE_TYPE:
        raw = _first_present(value, NUMBER_KEYS) if isinstance(value, dict) else value
        number = coerce_number(raw)
    elif question_type == DATE_TYPE:
        raw = _first_present(value, DATE_KEYS) if isinstance(value, dict) else value
        date = str(raw).strip() if raw not in (None, '') else None
        if isinstance(value, dict) and value.get('end_date') not in (None, ''):
            end_date = str(value['end_date']).strip()
    elif question_type == FILE_UPLOAD:
        file_value = _normalize_file(value)
    else:
        raw = value.get('text') if isinstance(value, dict) else value
        text = None if raw is None else str(raw)

    return NormalizedResponse(
        question_type=question_type,
        selected_option_ids=selected,
        text=text,
        number=number,
        boolean=boolean,
        date=date,
        end_date=end_date,
        file=file_value,
    )


def encode_response(response):
    """
    Return the storage shape of a normalized answer.

    ``normalize_response`` applied to the result yields an equivalent
    :class:`NormalizedResponse`.
    """
    question_type = response.question_type
    if question_type in CHOICE_TYPES:
        encoded = {'selected_option_ids': list(response.selected_option_ids)}
        if question_type == BOOLEAN_TYPE and response.boolean is not None:
            encoded['boolean'] = response.boolean
        return encoded
    if question_type == RANGE_TYPE:
        return {'number': response.number}
    if question_type == DATE_TYPE:
        encoded = {'date': response.date}
        if response.end_date is not None:
            encoded['end_date'] = response.end_date
        return encoded
    if question_type == FILE_UPLOAD:
        return {'file': response.file._asdict() if response.file else None}
    return {'text': response.text}


def parse_date_value(value):
    """
    Parse an ISO-8601 date, datetime, year-month or year into a ``date``.

    A year-month or a bare year is read as the first day of that period.
    Returns None when the value cannot be read as a date.
    """
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value

    text = str(value).strip()
    try:
        parsed = parse_datetime(text)
        if parsed is not None:
            return parsed.date()
        parsed = parse_date(text)
        if parsed is not None:
            return parsed
        match = YEAR_MONTH_PATTERN.match(text)
        if match:
            return datetime.date(int(match.group(1)), int(match.group(2) or 1), 1)
    except ValueError:
        return None
    return None


def parse_time_value(value):
    """
    Parse a time of day (``14:30``, ``14:30:15``) or the time part of an
    ISO-8601 datetime into a naive ``time``.

    Returns None when the value cannot be read as a time.
    """
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.time()
    if isinstance(value, datetime.time):
        return value.replace(tzinfo=None)

    text = str(value).strip()
    try:
        parsed = parse_time(text)
        if parsed is None:
            parsed = parse_datetime(text)
            parsed = parsed.time() if parsed is not None else None
    except ValueError:
        return None
    return parsed.replace(tzinfo=None) if parsed is not None else None


def seconds_since_midnight(value):
    return value.hour * 3600 + value.minute * 60 + value.second + value.microsecond / 1000000.0
