# module backend.app
"""Instance FastAPI unique, construite par la factory."""
from backend.app_setup.factory import create_app

app = create_app()
