# api/index.py
import os
import sys
from pathlib import Path

from serverless_wsgi import handle_request
from django.core.wsgi import get_wsgi_application

# Add the project root to Python path
BASE_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "school_evaluation.settings")

# Load the WSGI app once per cold start
application = get_wsgi_application()

def handler(event, context):
    # Adapt the serverless (Vercel/Lambda) event to the school evaluation API
    return handle_request(application, event, context)
