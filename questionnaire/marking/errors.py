"""
Errors raised by the marking engine.
"""


class MarkingError(Exception):
    """ A generic error for errors that occur while marking a session. """


class MarkingConfigurationError(MarkingError):
    """Error indicating the marking scheme cannot be used as configured.

    Raised before any score is written; the marking attempt fails as a whole
    and the session keeps its state.

    """


class NoActiveMarkingScheme(MarkingConfigurationError):
    """
    The assessment has no active marking scheme and none was given.
    """


class InvalidMarkingCriteria(MarkingConfigurationError):
    """Error indicating a rule's criteria are malformed.

    Raised when required criteria fields are missing or have the wrong type,
    or when the rule type does not fit the question type.

    """

    def __init__(self, msg, rule_id=None):
        super().__init__(msg)
        self.rule_id = rule_id


class ResponseGradingError(MarkingError):
    """Error indicating a single response could not be graded.

    The marking pass logs it and skips the response instead of failing.

    """
