"""Report storage using SQLAlchemy."""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    pass


class ReportDB(Base):
    """A generated year-in-review report and its enrichment progress."""

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    year = Column(Integer, nullable=False, index=True)
    strict = Column(Boolean, default=False)
    stats_json = Column(Text, nullable=False)

    # Enrichment
    enrichment_json = Column(Text, nullable=True)
    enrichment_status = Column(String(50), default="pending")  # pending, running, done, cancelled, error, disabled
    error_message = Column(Text, nullable=True)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def stats(self) -> dict:
        return json.loads(self.stats_json)

    @property
    def enrichment(self) -> Optional[dict]:
        return json.loads(self.enrichment_json) if self.enrichment_json else None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "year": self.year,
            "strict": self.strict,
            "stats": self.stats,
            "enrichment": self.enrichment,
            "enrichment_status": self.enrichment_status,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Database:
    """Database operations."""

    def __init__(self, db_path: Path = Path("data/wrapped.db")):
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(
            f"sqlite:///{db_path}",
            echo=False,
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def get_session(self) -> Session:
        return self.SessionLocal()

    def create_report(self, stats: dict, strict: bool = False) -> ReportDB:
        """Store a freshly computed stats snapshot."""
        with self.get_session() as session:
            report = ReportDB(
                year=stats["year"],
                strict=strict,
                stats_json=json.dumps(stats, ensure_ascii=False),
            )
            session.add(report)
            session.commit()
            session.refresh(report)
            return report

    def get_report(self, report_id: int) -> Optional[ReportDB]:
        """Get a single report by ID."""
        with self.get_session() as session:
            return session.query(ReportDB).filter(ReportDB.id == report_id).first()

    def update_enrichment(
        self,
        report_id: int,
        snapshot: Optional[dict] = None,
        status: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """Record the latest enrichment snapshot and/or status."""
        with self.get_session() as session:
            report = session.query(ReportDB).filter(ReportDB.id == report_id).first()
            if not report:
                return

            if snapshot is not None:
                report.enrichment_json = json.dumps(snapshot, ensure_ascii=False)
            if status is not None:
                report.enrichment_status = status
            if error_message is not None:
                report.error_message = error_message

            session.commit()

    def delete_report(self, report_id: int) -> bool:
        """Delete a report by ID."""
        with self.get_session() as session:
            report = session.query(ReportDB).filter(ReportDB.id == report_id).first()
            if report:
                session.delete(report)
                session.commit()
                return True
            return False
