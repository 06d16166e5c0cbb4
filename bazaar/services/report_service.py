import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from bazaar.core.clock import utcnow
from bazaar.core.errors import Forbidden, NotFound, TooShort, ValidationFailed
from bazaar.db.models.market_model import Report
from bazaar.db.models.user_model import User
from bazaar.repositories.chat_repository import ChatRepository
from bazaar.repositories.product_repository import ProductRepository
from bazaar.repositories.report_repository import ReportRepository
from bazaar.repositories.user_repository import UserRepository
from bazaar.services.guards import require_admin, require_identity

logger = logging.getLogger(__name__)

report_repo = ReportRepository()
product_repo = ProductRepository()
chat_repo = ChatRepository()
user_repo = UserRepository()

REPORT_TYPES = ("user", "post", "chat", "product")
REASON_MIN = 5


class ReportService:

    def report_content(self, db: Session, report_type: str, content_id: Optional[str],
                       reported_user: str, reason: str, reporter: Optional[User],
                       now: Optional[datetime] = None) -> Report:
        require_identity(reporter)
        if not reason or len(reason.strip()) < REASON_MIN:
            raise TooShort("reason", REASON_MIN)
        if report_type not in REPORT_TYPES:
            raise ValidationFailed("type", f"Report type must be one of {', '.join(REPORT_TYPES)}")
        if report_type != "user" and not content_id:
            raise ValidationFailed("content_id", "Reported content is required")
        if reported_user == reporter.username:
            raise Forbidden("You cannot report your own content")

        report = Report(
            type=report_type,
            content_id=content_id if report_type != "user" else None,
            reported_user=reported_user,
            reason=reason,
            reported_by=reporter.username,
            created_at=now or utcnow(),
        )
        report = report_repo.create(db, report)
        logger.info("%s reported %s (%s)", reporter.username, reported_user, report_type)
        return report

    def report_product(self, db: Session, product_id: str, reason: str, reporter: Optional[User]) -> Report:
        product = product_repo.get_by_id(db, product_id)
        if not product:
            raise NotFound("Product")
        return self.report_content(db, "product", product.id, product.author, reason, reporter)

    def report_message(self, db: Session, message_id: str, reason: str, reporter: Optional[User]) -> Report:
        message = chat_repo.get_by_id(db, message_id)
        if not message:
            raise NotFound("Message")
        return self.report_content(db, "chat", message.id, message.author, reason, reporter)

    def report_user(self, db: Session, username: str, reason: str, reporter: Optional[User]) -> Report:
        if not user_repo.get_by_username(db, username):
            raise NotFound("User")
        return self.report_content(db, "user", None, username, reason, reporter)

    def list_reports(self, db: Session, acting_admin: Optional[User], report_type: Optional[str] = None) -> List[Report]:
        require_admin(acting_admin)
        if report_type and report_type not in REPORT_TYPES:
            raise ValidationFailed("type", f"Report type must be one of {', '.join(REPORT_TYPES)}")
        return report_repo.list_all(db, report_type)

    def dismiss_report(self, db: Session, report_id: str, acting_admin: Optional[User]) -> None:
        require_admin(acting_admin)
        report = report_repo.get_by_id(db, report_id)
        if not report:
            raise NotFound("Report")
        report_repo.delete(db, report)
        db.commit()
        logger.info("%s dismissed report %s", acting_admin.username, report_id)

    def act_on_report(self, db: Session, report_id: str, acting_admin: Optional[User]) -> None:
        """Remove the reported content, then the report.

        User and post reports carry no content to remove here; a ban is
        issued separately.
        """
        require_admin(acting_admin)
        report = report_repo.get_by_id(db, report_id)
        if not report:
            raise NotFound("Report")
        report_type = report.type

        if report.type == "chat":
            message = chat_repo.get_by_id(db, report.content_id)
            if not message:
                raise NotFound("Message")
            chat_repo.delete(db, message)
        elif report.type == "product":
            if not product_repo.get_by_id(db, report.content_id):
                raise NotFound("Product")
            product_repo.soft_delete(db, report.content_id)

        report_repo.delete(db, report)
        db.commit()
        logger.info("%s acted on %s report %s", acting_admin.username, report_type, report_id)
