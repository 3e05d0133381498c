"""
questionnaire.workflow Django application initialization.
"""

from django.apps import AppConfig


class QuestionnaireWorkflowConfig(AppConfig):
    """
    Configuration for the questionnaire.workflow Django application.
    """

    name = 'questionnaire.workflow'
    label = 'workflow'
    verbose_name = 'Response sessions'
    default_auto_field = 'django.db.models.AutoField'

    def ready(self):
        from questionnaire.workflow import receivers  # pylint: disable=unused-import,import-outside-toplevel
