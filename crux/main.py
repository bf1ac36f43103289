# Entry point for uvicorn: `uvicorn crux.main:app`
from .api import create_app

app = create_app()
