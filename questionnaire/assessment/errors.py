"""
Errors raised while authoring or evaluating assessment content.
"""


class AssessmentContentError(Exception):
    """ A generic error for problems with sections, questions or options. """


class InvalidVisibilityCondition(AssessmentContentError):
    """
    A visibility condition is malformed or violates document order.
    """


class InvalidQuestionContent(AssessmentContentError):
    """
    A question or option is inconsistent with its question type.
    """


class AssessmentInternalError(AssessmentContentError):
    """
    An unexpected error occurred while reading or writing assessment content.
    """
