# pylint: skip-file

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import model_utils.fields


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Assessment',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('restricted_countries', models.JSONField(default=list, blank=True)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(default='', max_length=1000, blank=True)),
                ('active', models.BooleanField(default=True, db_index=True)),
                ('metadata', models.JSONField(default=dict, blank=True)),
            ],
            options={
                'ordering': ['-created'],
            },
        ),
        migrations.CreateModel(
            name='AssessmentSection',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('restricted_countries', models.JSONField(default=list, blank=True)),
                ('is_conditional', models.BooleanField(default=False, db_index=True)),
                ('visibility_conditions', models.JSONField(default=dict, blank=True)),
                ('name', models.CharField(default='', max_length=255, blank=True)),
                ('description', models.TextField(default='', blank=True)),
                ('order', models.PositiveIntegerField()),
                ('assessment', models.ForeignKey(related_name='sections', to='assessment.Assessment', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['order', 'id'],
                'unique_together': {('assessment', 'order')},
            },
        ),
        migrations.CreateModel(
            name='AssessmentQuestion',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('restricted_countries', models.JSONField(default=list, blank=True)),
                ('is_conditional', models.BooleanField(default=False, db_index=True)),
                ('visibility_conditions', models.JSONField(default=dict, blank=True)),
                ('text', models.TextField(max_length=1000)),
                ('question_type', models.CharField(max_length=32, db_index=True, choices=[('RichText', 'Rich text'), ('MultipleChoice', 'Multiple choice'), ('Radio', 'Radio'), ('BooleanType', 'Yes / No'), ('RangeType', 'Range'), ('DateType', 'Date'), ('FileUpload', 'File upload')])),
                ('sub_type', models.CharField(default='', max_length=32, blank=True)),
                ('order', models.PositiveIntegerField()),
                ('is_required', models.BooleanField(default=False)),
                ('meta_data', models.JSONField(default=dict, blank=True)),
                ('section', models.ForeignKey(related_name='questions', to='assessment.AssessmentSection', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['order', 'id'],
                'unique_together': {('section', 'order')},
            },
        ),
        migrations.CreateModel(
            name='AssessmentQuestionOption',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('created', model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, verbose_name='created', editable=False)),
                ('modified', model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, verbose_name='modified', editable=False)),
                ('text', models.CharField(max_length=255)),
                ('order', models.PositiveIntegerField(default=1)),
                ('points', models.DecimalField(null=True, max_digits=10, decimal_places=2, blank=True)),
                ('is_correct_answer', models.BooleanField(default=False)),
                ('question', models.ForeignKey(related_name='options', to='assessment.AssessmentQuestion', on_delete=django.db.models.deletion.CASCADE)),
            ],
            options={
                'ordering': ['order', 'id'],
            },
        ),
    ]
