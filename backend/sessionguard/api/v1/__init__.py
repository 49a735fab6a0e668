"""Version 1 routes: ``/health`` and ``/auth/*``."""
