"""
Django admin models for marking schemes and scores.
"""

from django.contrib import admin

from questionnaire.marking.models import MarkingRule, MarkingScheme, ResponseScore


class MarkingRuleInline(admin.TabularInline):
    """
    Django admin model for the rules of a marking scheme.
    """
    model = MarkingRule
    fields = ('question', 'rule_type', 'points', 'order', 'is_active', 'criteria')
    raw_id_fields = ('question',)
    extra = 0


class MarkingSchemeAdmin(admin.ModelAdmin):
    """
    Django admin model for MarkingSchemes.
    """
    list_display = ('id', 'name', 'assessment', 'is_active', 'activated_at', 'total_possible_score')
    list_filter = ('is_active',)
    search_fields = ('id', 'name', 'assessment__title')
    raw_id_fields = ('assessment',)
    readonly_fields = ('activated_at', 'total_possible_score')
    inlines = (MarkingRuleInline,)


class ResponseScoreAdmin(admin.ModelAdmin):
    """
    Django admin model for ResponseScores.
    """
    list_display = ('id', 'session', 'question', 'rule', 'score_earned', 'max_possible_score')
    search_fields = ('id', 'session__id', 'question__text')
    readonly_fields = (
        'session', 'question', 'response', 'scheme', 'rule',
        'score_earned', 'max_possible_score', 'scoring_details', 'feedback',
    )


admin.site.register(MarkingScheme, MarkingSchemeAdmin)
admin.site.register(ResponseScore, ResponseScoreAdmin)
