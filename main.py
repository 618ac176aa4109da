"""Entrypoint: `uvicorn main:app` or `python main.py`."""
import uvicorn

from supply_ledger.core.config import settings
from supply_ledger.main import app

if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
