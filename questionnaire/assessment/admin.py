"""
Django admin models for assessment content.
"""

from django.contrib import admin
from django.urls import reverse_lazy
from django.utils.html import format_html

from questionnaire.assessment.models import (
    Assessment, AssessmentQuestion, AssessmentQuestionOption, AssessmentSection
)


class AssessmentSectionInline(admin.TabularInline):
    """
    Django admin model for the sections of an assessment.
    """
    model = AssessmentSection
    fields = ('order', 'name', 'is_conditional', 'restricted_countries')
    extra = 0


class AssessmentQuestionOptionInline(admin.TabularInline):
    """
    Django admin model for the options of a choice question.
    """
    model = AssessmentQuestionOption
    fields = ('order', 'text', 'points', 'is_correct_answer')
    extra = 0


class AssessmentAdmin(admin.ModelAdmin):
    """
    Django admin model for Assessments.
    """
    list_display = ('id', 'title', 'active', 'created', 'modified')
    list_filter = ('active',)
    search_fields = ('id', 'title')
    inlines = (AssessmentSectionInline,)


class AssessmentSectionAdmin(admin.ModelAdmin):
    """
    Django admin model for AssessmentSections.
    """
    list_display = ('id', 'assessment_link', 'order', 'name', 'is_conditional')
    list_filter = ('is_conditional',)
    search_fields = ('id', 'name', 'assessment__title')
    raw_id_fields = ('assessment',)

    def assessment_link(self, section_obj):
        """
        Returns the link to the section's assessment.
        """
        url = reverse_lazy('admin:assessment_assessment_change', args=[section_obj.assessment_id])
        return format_html('<a href="{}">{}</a>', url, section_obj.assessment.title)
    assessment_link.admin_order_field = 'assessment__title'
    assessment_link.short_description = 'Assessment'


class AssessmentQuestionAdmin(admin.ModelAdmin):
    """
    Django admin model for AssessmentQuestions.
    """
    list_display = ('id', 'text', 'question_type', 'sub_type', 'section', 'order', 'is_required', 'is_conditional')
    list_filter = ('question_type', 'is_required', 'is_conditional')
    search_fields = ('id', 'text', 'section__assessment__title')
    raw_id_fields = ('section',)
    inlines = (AssessmentQuestionOptionInline,)


admin.site.register(Assessment, AssessmentAdmin)
admin.site.register(AssessmentSection, AssessmentSectionAdmin)
admin.site.register(AssessmentQuestion, AssessmentQuestionAdmin)
