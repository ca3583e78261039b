from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'atelier.core'

    def ready(self):
        """Import signals when app is ready"""
        import atelier.core.cache_signals  # noqa: F401
