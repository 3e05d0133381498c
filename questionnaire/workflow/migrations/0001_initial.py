# pylint: skip-file

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import model_utils.fields


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('assessment', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ResponseSession',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('respondent_name', models.CharField(default='', max_length=255, blank=True)),
                ('country_code', models.CharField(default='', max_length=8, blank=True)),
                ('state', model_utils.fields.StatusField(default='draft', max_length=100, no_check_for_status=True, db_index=True, choices=[('draft', 'Draft'), ('started', 'Started'), ('submitted', 'Submitted'), ('completed', 'Completed'), ('marked', 'Marked')])),
                ('total_score', models.DecimalField(null=True, max_digits=10, decimal_places=2, blank=True)),
                ('max_possible_score', models.DecimalField(null=True, max_digits=10, decimal_places=2, blank=True)),
                ('grade', models.CharField(default='', max_length=32, blank=True)),
                ('feedback', models.TextField(default='', blank=True)),
                ('metadata', models.JSONField(default=dict, blank=True)),
                ('started_at', models.DateTimeField(null=True, blank=True)),
                ('completed_at', models.DateTimeField(null=True, blank=True)),
                ('submitted_at', models.DateTimeField(null=True, blank=True)),
                ('marked_at', models.DateTimeField(null=True, blank=True, db_index=True)),
                ('assessment', models.ForeignKey(related_name='response_sessions', to='assessment.Assessment', on_delete=django.db.models.deletion.CASCADE)),
                ('user', models.ForeignKey(related_name='response_sessions', to=settings.AUTH_USER_MODEL, on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['-created'],
                'unique_together': {('user', 'assessment')},
            },
        ),
        migrations.CreateModel(
            name='QuestionResponse',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('value', models.JSONField(default=dict, blank=True)),
                ('question', models.ForeignKey(related_name='responses', to='assessment.AssessmentQuestion', on_delete=django.db.models.deletion.CASCADE)),
                ('session', models.ForeignKey(related_name='responses', to='workflow.ResponseSession', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['id'],
                'unique_together': {('session', 'question')},
            },
        ),
        migrations.CreateModel(
            name='SelectedOption',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', models.DateTimeField(default=django.utils.timezone.now)),
                ('option', models.ForeignKey(related_name='selections', to='assessment.AssessmentQuestionOption', on_delete=django.db.models.deletion.CASCADE)),
                ('response', models.ForeignKey(related_name='selected_options', to='workflow.QuestionResponse', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['id'],
                'unique_together': {('response', 'option')},
            },
        ),
    ]
