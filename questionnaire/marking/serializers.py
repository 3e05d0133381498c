"""
Serializers for marking schemes and the scores they produce.
"""

from rest_framework import serializers

from questionnaire.marking.models import MarkingRule, MarkingScheme, ResponseScore


class MarkingRuleSerializer(serializers.ModelSerializer):
    """
    Serialize a MarkingRule model.
    """
    class Meta:
        model = MarkingRule
        fields = (
            'id',
            'question',
            'rule_type',
            'points',
            'criteria',
            'order',
            'is_active',
        )


class MarkingSchemeSerializer(serializers.ModelSerializer):
    """
    Serialize a MarkingScheme model with its active rules.
    """
    rules = serializers.SerializerMethodField()
    grade_boundaries = serializers.SerializerMethodField()

    def get_rules(self, obj):
        return MarkingRuleSerializer(obj.rules.filter(is_active=True).order_by('question_id', 'order', 'id'), many=True).data

    def get_grade_boundaries(self, obj):
        return [[label, str(minimum)] for label, minimum in obj.grade_boundaries]

    class Meta:
        model = MarkingScheme
        fields = (
            'id',
            'assessment',
            'name',
            'description',
            'is_active',
            'activated_at',
            'total_possible_score',
            'settings',
            'created',
            'modified',

            # Computed
            'grade_boundaries',
            'rules',
        )


class ResponseScoreSerializer(serializers.ModelSerializer):
    """
    Serialize a ResponseScore model.
    """
    rule_type = serializers.SerializerMethodField()
    percentage = serializers.ReadOnlyField()

    def get_rule_type(self, obj):
        return obj.rule.rule_type if obj.rule_id else None

    class Meta:
        model = ResponseScore
        fields = (
            'id',
            'session',
            'question',
            'response',
            'scheme',
            'rule',
            'score_earned',
            'max_possible_score',
            'scoring_details',
            'feedback',
            'created',

            # Computed
            'rule_type',
            'percentage',
        )
