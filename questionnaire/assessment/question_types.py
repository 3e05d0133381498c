"""
The closed set of question types and the sub-types each one accepts.
"""

from model_utils import Choices

RICH_TEXT = 'RichText'
MULTIPLE_CHOICE = 'MultipleChoice'
RADIO = 'Radio'
BOOLEAN_TYPE = 'BooleanType'
RANGE_TYPE = 'RangeType'
DATE_TYPE = 'DateType'
FILE_UPLOAD = 'FileUpload'

QUESTION_TYPES = Choices(
    (RICH_TEXT, 'Rich text'),
    (MULTIPLE_CHOICE, 'Multiple choice'),
    (RADIO, 'Radio'),
    (BOOLEAN_TYPE, 'Yes / No'),
    (RANGE_TYPE, 'Range'),
    (DATE_TYPE, 'Date'),
    (FILE_UPLOAD, 'File upload'),
)

# Question types answered by selecting options.
CHOICE_TYPES = frozenset([MULTIPLE_CHOICE, RADIO, BOOLEAN_TYPE])

# Question types that accept at most one selected option.
SINGLE_CHOICE_TYPES = frozenset([RADIO, BOOLEAN_TYPE])

SUB_TYPES = {
    RICH_TEXT: ('short_text', 'long_text', 'rich_text', 'email', 'url', 'phone'),
    MULTIPLE_CHOICE: ('checkbox', 'dropdown'),
    RADIO: ('radio_buttons', 'button_group'),
    BOOLEAN_TYPE: ('toggle', 'yes_no'),
    RANGE_TYPE: ('slider', 'number_input', 'rating', 'scale', 'spinner', 'progress', 'range'),
    DATE_TYPE: ('date', 'datetime', 'year', 'time', 'month'),
    FILE_UPLOAD: ('single', 'multiple'),
}

DEFAULT_SUB_TYPES = {
    RANGE_TYPE: 'slider',
    DATE_TYPE: 'date',
}

DEFAULT_ALLOWED_FILE_TYPES = (
    'image/jpeg',
    'image/png',
    'image/gif',
    'application/pdf',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'text/plain',
)

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


def is_valid_sub_type(question_type, sub_type):
    """
    Check that ``sub_type`` is allowed for ``question_type``.

    An empty sub-type is always allowed.
    """
    if not sub_type:
        return True
    return sub_type in SUB_TYPES.get(question_type, ())
