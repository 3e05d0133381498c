"""
Serializers are created to ensure models do not have to be accessed outside the
scope of the session APIs.
"""

from rest_framework import serializers

from questionnaire.workflow.models import QuestionResponse, ResponseSession


class ResponseSessionSerializer(serializers.ModelSerializer):
    """
    Serialize a ResponseSession model.
    """
    percentage = serializers.SerializerMethodField()

    def get_percentage(self, obj):
        if obj.total_score is None:
            return None
        return str(obj.percentage)

    class Meta:
        model = ResponseSession
        fields = (
            'id',
            'user',
            'assessment',
            'respondent_name',
            'country_code',
            'state',
            'total_score',
            'max_possible_score',
            'grade',
            'feedback',
            'metadata',
            'started_at',
            'completed_at',
            'submitted_at',
            'marked_at',
            'created',
            'modified',

            # Computed
            'percentage',
        )


class QuestionResponseSerializer(serializers.ModelSerializer):
    """
    Serialize a QuestionResponse model with its selected options.
    """
    selected_option_ids = serializers.ReadOnlyField()

    class Meta:
        model = QuestionResponse
        fields = (
            'id',
            'session',
            'question',
            'value',
            'selected_option_ids',
            'created',
            'modified',
        )
