from dotenv import load_dotenv

load_dotenv()

from quarry_ledger.core.config import settings  # noqa: E402
from quarry_ledger.main import app  # noqa: E402,F401


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
