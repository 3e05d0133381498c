"""
Errors defined by the response session API.
"""


class ResponseSessionError(Exception):
    """An error that occurs during response session actions.

    This error is raised when the session API cannot perform a requested
    action.

    """


class ResponseSessionInternalError(ResponseSessionError):
    """An error internal to the session API has occurred.

    This error is raised when an error occurs that is not caused by incorrect
    use of the API, but rather internal implementation of the underlying
    services.

    """


class ResponseSessionRequestError(ResponseSessionError):
    """This error is raised when there was a request-specific error

    This error is reserved for problems specific to the use of the API, such
    as an answer for a question outside the session's assessment.

    """


class ResponseSessionNotFound(ResponseSessionError):
    """This error is raised when no session is found for the request.
    """


class InvalidSessionTransition(ResponseSessionError):
    """
    The session cannot move from its current state to the requested one.
    """
    def __init__(self, session_id, current_state, target_state):
        msg = "Session {} cannot move from '{}' to '{}'".format(session_id, current_state, target_state)
        super().__init__(msg)
        self.session_id = session_id
        self.current_state = current_state
        self.target_state = target_state


class IncompleteSessionError(ResponseSessionError):
    """
    Required, visible questions have not been answered.

    ``missing_questions`` lists a ``{'id': ..., 'text': ...}`` dict per
    unanswered question, in document order.
    """
    def __init__(self, missing_questions):
        self.missing_questions = list(missing_questions)
        super().__init__(
            "Please answer all required questions: {}".format(
                ", ".join(str(question['id']) for question in self.missing_questions)
            )
        )
