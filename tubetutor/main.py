from fastapi import Depends, FastAPI
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tubetutor.api.ai_content import router as ai_content_router
from tubetutor.core.logging import configure_logging
from tubetutor.db.session import get_db

configure_logging()

app = FastAPI(title="TubeTutor AI Content API", version="0.1.0")
app.include_router(ai_content_router)


class HealthResponse(BaseModel):
    ok: bool
    service: str
    version: str
    db_ok: bool


@app.get("/health", response_model=HealthResponse)
def health(db: Session = Depends(get_db)) -> HealthResponse:
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError:
        db_ok = False

    return HealthResponse(ok=True, service="api", version=app.version, db_ok=db_ok)
