# function_app/__init__.py
import azure.functions as func

from .shared.logger import configure_logging

configure_logging()

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

# Register HTTP functions (they import `app` from this package)
from . import MediafireRelay  # noqa: E402,F401
