import json
import logging
from typing import Protocol

from sqlalchemy.orm import Session, sessionmaker

from surveysync.db_models import SurveyResponse
from surveysync.schemas import ResponseRecord


logger = logging.getLogger(__name__)


class ResponseSink(Protocol):
    def accept(self, record: ResponseRecord) -> None: ...


class SqlResponseSink:
    """Writes every fetched response as one row; repeated deliveries are kept."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def accept(self, record: ResponseRecord) -> None:
        with self.session_factory() as db:
            db.add(
                SurveyResponse(
                    run_key=record.run_key,
                    project_id=record.project_id,
                    case_id=record.case_id,
                    payload=json.dumps(record.payload, sort_keys=True),
                    fetched_at=record.fetched_at.replace(tzinfo=None),
                )
            )
            db.commit()
        logger.debug("response stored", extra={"run_key": record.run_key, "case_id": record.case_id})
