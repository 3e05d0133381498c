"""
questionnaire.marking Django application initialization.
"""

from django.apps import AppConfig


class QuestionnaireMarkingConfig(AppConfig):
    """
    Configuration for the questionnaire.marking Django application.
    """

    name = 'questionnaire.marking'
    label = 'marking'
    verbose_name = 'Marking'
    default_auto_field = 'django.db.models.AutoField'
