# pylint: skip-file

from decimal import Decimal

import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import model_utils.fields


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('assessment', '0001_initial'),
        ('workflow', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='MarkingScheme',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(default='', blank=True)),
                ('is_active', models.BooleanField(default=False, db_index=True)),
                ('activated_at', models.DateTimeField(null=True, blank=True, db_index=True)),
                ('total_possible_score', models.DecimalField(default=Decimal('0'), max_digits=10, decimal_places=2)),
                ('settings', models.JSONField(default=dict, blank=True)),
                ('assessment', models.ForeignKey(related_name='marking_schemes', to='assessment.Assessment', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['-activated_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='MarkingRule',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('rule_type', models.CharField(max_length=32, db_index=True, choices=[('exact_match', 'exact_match'), ('option_based', 'option_based'), ('tolerance_based', 'tolerance_based'), ('range_based', 'range_based'), ('keyword_based', 'keyword_based'), ('length_based', 'length_based'), ('partial_match', 'partial_match'), ('format_based', 'format_based'), ('file_based', 'file_based'), ('size_based', 'size_based'), ('type_based', 'type_based'), ('step_based', 'step_based'), ('date_range_based', 'date_range_based')])),
                ('points', models.DecimalField(default=Decimal('0'), max_digits=10, decimal_places=2, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('criteria', models.JSONField(default=dict, blank=True)),
                ('order', models.PositiveIntegerField(default=0, db_index=True)),
                ('is_active', models.BooleanField(default=True, db_index=True)),
                ('question', models.ForeignKey(related_name='marking_rules', to='assessment.AssessmentQuestion', on_delete=django.db.models.deletion.CASCADE)),
                ('scheme', models.ForeignKey(related_name='rules', to='marking.MarkingScheme', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='ResponseScore',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('score_earned', models.DecimalField(default=Decimal('0'), max_digits=10, decimal_places=2)),
                ('max_possible_score', models.DecimalField(default=Decimal('0'), max_digits=10, decimal_places=2)),
                ('scoring_details', models.JSONField(default=dict, blank=True)),
                ('feedback', models.TextField(default='', blank=True)),
                ('question', models.ForeignKey(related_name='scores', to='assessment.AssessmentQuestion', on_delete=django.db.models.deletion.CASCADE)),
                ('response', models.ForeignKey(related_name='scores', blank=True, null=True, to='workflow.QuestionResponse', on_delete=django.db.models.deletion.SET_NULL)),
                ('rule', models.ForeignKey(related_name='scores', null=True, to='marking.MarkingRule', on_delete=django.db.models.deletion.SET_NULL)),
                ('scheme', models.ForeignKey(related_name='scores', to='marking.MarkingScheme', on_delete=django.db.models.deletion.CASCADE)),
                ('session', models.ForeignKey(related_name='scores', to='workflow.ResponseSession', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['question_id', 'id'],
            },
        ),
    ]
