# pylint: skip-file

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('marking', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='markingrule',
            name='rule_type',
            field=models.CharField(max_length=32, db_index=True, choices=[('exact_match', 'exact_match'), ('option_based', 'option_based'), ('tolerance_based', 'tolerance_based'), ('range_based', 'range_based'), ('keyword_based', 'keyword_based'), ('length_based', 'length_based'), ('partial_match', 'partial_match'), ('format_based', 'format_based'), ('file_based', 'file_based'), ('size_based', 'size_based'), ('type_based', 'type_based'), ('step_based', 'step_based'), ('date_range_based', 'date_range_based'), ('time_based', 'time_based'), ('overlap_based', 'overlap_based'), ('strength_based', 'strength_based'), ('content_analysis', 'content_analysis')]),
        ),
    ]
