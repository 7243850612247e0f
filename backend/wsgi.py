# backend/wsgi.py
from nooda import create_app

app = create_app()
