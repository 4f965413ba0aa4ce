"""
Pie Ledger server.

Run with:
    python main.py
or:
    uvicorn main:app --port 3000
"""

import uvicorn
from dotenv import load_dotenv

load_dotenv()

from app.core.config import settings
from app.main import app

if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
    )
