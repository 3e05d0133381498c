"""
questionnaire.assessment Django application initialization.
"""

from django.apps import AppConfig


class QuestionnaireAssessmentConfig(AppConfig):
    """
    Configuration for the questionnaire.assessment Django application.
    """

    name = 'questionnaire.assessment'
    label = 'assessment'
    verbose_name = 'Assessment content'
    default_auto_field = 'django.db.models.AutoField'
