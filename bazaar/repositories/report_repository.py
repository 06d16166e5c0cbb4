from typing import List, Optional

from sqlalchemy.orm import Session
from bazaar.db.models.market_model import Report

class ReportRepository:

    def create(self, db: Session, report: Report):
        db.add(report)
        db.commit()
        db.refresh(report)
        return report

    def get_by_id(self, db: Session, report_id: str) -> Optional[Report]:
        return db.query(Report).filter(Report.id == report_id).first()

    def list_all(self, db: Session, report_type: Optional[str] = None) -> List[Report]:
        query = db.query(Report)
        if report_type:
            query = query.filter(Report.type == report_type)
        return query.order_by(Report.created_at.desc()).all()

    def delete(self, db: Session, report: Report):
        db.delete(report)

    def delete_for_user(self, db: Session, username: str) -> int:
        return (
            db.query(Report)
            .filter(Report.reported_user == username)
            .delete(synchronize_session=False)
        )
