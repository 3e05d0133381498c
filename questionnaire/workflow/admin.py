"""
Django admin models for response sessions.
"""

from django.contrib import admin

from questionnaire.workflow.models import QuestionResponse, ResponseSession, SelectedOption


class QuestionResponseInline(admin.StackedInline):
    """
    Django admin model for the responses of a session.
    """
    model = QuestionResponse
    fields = ('question', 'value')
    raw_id_fields = ('question',)
    extra = 0


class SelectedOptionInline(admin.TabularInline):
    """
    Django admin model for the options selected in a response.
    """
    model = SelectedOption
    raw_id_fields = ('option',)
    extra = 0


class ResponseSessionAdmin(admin.ModelAdmin):
    """
    Django admin model for ResponseSessions.
    """
    list_display = (
        'id', 'user', 'assessment', 'state', 'total_score', 'max_possible_score', 'grade',
        'submitted_at', 'marked_at',
    )
    list_filter = ('state',)
    search_fields = ('id', 'user__username', 'respondent_name', 'assessment__title')
    raw_id_fields = ('user', 'assessment')
    readonly_fields = ('state', 'started_at', 'completed_at', 'submitted_at', 'marked_at', 'metadata')
    inlines = (QuestionResponseInline,)


class QuestionResponseAdmin(admin.ModelAdmin):
    """
    Django admin model for QuestionResponses.
    """
    list_display = ('id', 'session', 'question', 'modified')
    raw_id_fields = ('session', 'question')
    inlines = (SelectedOptionInline,)


admin.site.register(ResponseSession, ResponseSessionAdmin)
admin.site.register(QuestionResponse, QuestionResponseAdmin)
