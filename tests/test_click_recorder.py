from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from shortlink_app.database.connection import Base
from shortlink_app.models.click import Click
from shortlink_app.models.url import URL
from shortlink_app.schemas.click import ClickEvent
from shortlink_app.services.click_recorder import ClickRecorder


def add_url(db_session, short_code="abc1234"):
    db_session.add(URL(short_code=short_code, original_url="https://example.com"))
    db_session.commit()


class TestClickRecorder:

    def test_record_increments_and_appends(self, session_factory, db_session):
        add_url(db_session)
        recorder = ClickRecorder(session_factory)
        event = ClickEvent(
            short_code="abc1234",
            timestamp=datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            ip_address="10.0.0.1",
            user_agent="curl/8.0",
            referer="https://news.ycombinator.com",
        )

        assert recorder.record(event) is True
        assert recorder.record(event.model_copy()) is True

        db_session.expire_all()
        assert db_session.query(URL).one().click_count == 2
        clicks = db_session.query(Click).all()
        assert len(clicks) == 2
        assert clicks[0].user_agent == "curl/8.0"
        assert clicks[0].ip_address == "10.0.0.1"

    def test_record_with_caller_session(self, session_factory, db_session):
        add_url(db_session)
        recorder = ClickRecorder(session_factory)

        assert recorder.record(ClickEvent(short_code="abc1234"), db=db_session) is True
        assert db_session.query(URL).one().click_count == 1

    def test_unknown_code_is_dropped(self, session_factory, db_session):
        recorder = ClickRecorder(session_factory)

        assert recorder.record(ClickEvent(short_code="missing")) is False
        assert db_session.query(Click).count() == 0

    def test_store_failure_is_swallowed(self, session_factory, db_session, caplog):
        add_url(db_session)
        Click.__table__.drop(bind=session_factory.kw["bind"])
        recorder = ClickRecorder(session_factory)

        assert recorder.record(ClickEvent(short_code="abc1234")) is False
        assert "Failed to record click" in caplog.text

        # The increment was rolled back with the failed insert
        db_session.expire_all()
        assert db_session.query(URL).one().click_count == 0

        Click.__table__.create(bind=session_factory.kw["bind"])

    def test_concurrent_clicks_are_all_counted(self, tmp_path):
        """Parallel recorders on a file-backed store never lose an increment"""
        engine = create_engine(
            f"sqlite:///{tmp_path / 'clicks.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        # Take the write lock at BEGIN so concurrent writers queue instead
        # of failing their lock upgrade
        @event.listens_for(engine, "connect")
        def disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        Base.metadata.create_all(bind=engine)
        factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        with factory() as db:
            add_url(db)

        recorder = ClickRecorder(factory)
        clicks = 20
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(
                lambda i: recorder.record(ClickEvent(short_code="abc1234", ip_address=f"10.0.0.{i}")),
                range(clicks),
            ))

        assert results == [True] * clicks
        with factory() as db:
            assert db.query(URL).one().click_count == clicks
            assert db.query(Click).count() == clicks
        engine.dispose()
