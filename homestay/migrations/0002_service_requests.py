from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ('homestay', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='homestayapplication',
            name='parent_application',
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='service_requests', to='homestay.homestayapplication'),
        ),
        migrations.AddField(
            model_name='homestayapplication',
            name='parent_application_number',
            field=models.CharField(blank=True, max_length=50),
        ),
        migrations.AddField(
            model_name='homestayapplication',
            name='parent_certificate_number',
            field=models.CharField(blank=True, max_length=50),
        ),
        migrations.AddField(
            model_name='homestayapplication',
            name='inherited_certificate_valid_upto',
            field=models.DateField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name='homestayapplication',
            name='service_context',
            field=models.JSONField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name='homestayapplication',
            name='service_notes',
            field=models.TextField(blank=True),
        ),
        migrations.AddField(
            model_name='homestayapplication',
            name='service_requested_at',
            field=models.DateTimeField(blank=True, null=True),
        ),
    ]
