from datetime import UTC, datetime
import json
from pathlib import Path

from sqlalchemy import select

from surveysync.database import build_session_factory
from surveysync.db_models import SurveyResponse
from surveysync.schemas import ResponseRecord
from surveysync.sinks import SqlResponseSink


def test_sql_sink_stores_each_delivery(tmp_path: Path) -> None:
    session_factory = build_session_factory(f"sqlite:///{tmp_path / 'sink.db'}")
    sink = SqlResponseSink(session_factory)
    fetched_at = datetime(2026, 3, 2, 10, 15, tzinfo=UTC)

    for run_key in ("sync-1", "sync-2"):
        sink.accept(
            ResponseRecord(
                run_key=run_key,
                project_id="103",
                case_id="42",
                payload={"Answers": [{"Q1": "yes"}]},
                fetched_at=fetched_at,
            )
        )

    with session_factory() as db:
        rows = db.execute(select(SurveyResponse).order_by(SurveyResponse.id)).scalars().all()

    assert [row.run_key for row in rows] == ["sync-1", "sync-2"]
    assert all(row.case_id == "42" and row.project_id == "103" for row in rows)
    assert json.loads(rows[0].payload) == {"Answers": [{"Q1": "yes"}]}
    assert rows[0].fetched_at == datetime(2026, 3, 2, 10, 15)
