from django.apps import AppConfig


class HomestayConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'homestay'
    verbose_name = 'HP Homestay Registration'

    def ready(self):
        from .services import build_services
        self.services = build_services()
