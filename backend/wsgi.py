# backend/wsgi.py
from plots_erp import create_app

app = create_app()
