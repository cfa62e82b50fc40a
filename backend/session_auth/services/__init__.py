"""Service layer.

Kept free of re-exports: :mod:`session_auth.core.config` imports the error
taxonomy from :mod:`session_auth.services._shared.errors`, so eager imports
here would cycle back into configuration. Import services from their modules,
e.g. ``from session_auth.services.auth import AuthenticationService``.
"""
