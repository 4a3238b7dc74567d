"""Worker repository - Database operations for workers, earnings and job requests"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import JobRequest, Worker, WorkerDailyEarning


class WorkerRepository:
    """Repository for worker database operations"""

    @staticmethod
    def get_worker(db: Session, worker_id: str) -> Optional[Worker]:
        return db.query(Worker).filter(Worker.id == worker_id).first()

    @staticmethod
    def get_worker_by_email(db: Session, email: str) -> Optional[Worker]:
        return db.query(Worker).filter(Worker.email == email.lower()).first()

    @staticmethod
    def list_workers(db: Session, active_only: bool = False) -> list[Worker]:
        query = db.query(Worker)
        if active_only:
            query = query.filter(Worker.is_active.is_(True))
        return query.order_by(Worker.created_at.desc()).all()

    @staticmethod
    def create_worker(db: Session, **worker_data) -> Worker:
        worker = Worker(**worker_data)
        db.add(worker)
        db.commit()
        db.refresh(worker)
        return worker

    @staticmethod
    def update_worker(db: Session, worker: Worker, **updates) -> Worker:
        """Update a worker with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(worker, key):
                setattr(worker, key, value)

        db.commit()
        db.refresh(worker)
        return worker

    @staticmethod
    def delete_worker(db: Session, worker: Worker) -> None:
        db.delete(worker)
        db.commit()

    @staticmethod
    def set_current_booking(db: Session, worker_id: str, booking_id: Optional[str]) -> None:
        """Does not commit"""
        db.query(Worker).filter(Worker.id == worker_id).update(
            {Worker.current_booking_id: booking_id}, synchronize_session=False
        )

    @staticmethod
    def clear_current_booking(db: Session, booking_id: str) -> None:
        """Drop the pointer from whichever worker holds this booking; does not commit"""
        db.query(Worker).filter(Worker.current_booking_id == booking_id).update(
            {Worker.current_booking_id: None}, synchronize_session=False
        )

    # Earnings
    @staticmethod
    def credit_earnings(db: Session, worker_id: str, amount: int, on_date: date) -> None:
        """
        Add ``amount`` to the worker's running total and to the ledger row for
        ``on_date`` (creating the row on the first task of the day).

        Both writes are single atomic increments, so concurrent credits for
        different bookings never lose an update. Does not commit.
        """
        db.query(Worker).filter(Worker.id == worker_id).update(
            {Worker.total_earnings: Worker.total_earnings + amount}, synchronize_session=False
        )

        if WorkerRepository._increment_daily(db, worker_id, amount, on_date):
            return

        try:
            with db.begin_nested():
                db.add(
                    WorkerDailyEarning(
                        worker_id=worker_id, date=on_date, amount=amount, tasks_completed=1
                    )
                )
        except IntegrityError:
            # Another credit created today's row first
            WorkerRepository._increment_daily(db, worker_id, amount, on_date)

    @staticmethod
    def _increment_daily(db: Session, worker_id: str, amount: int, on_date: date) -> bool:
        rowcount = (
            db.query(WorkerDailyEarning)
            .filter(WorkerDailyEarning.worker_id == worker_id, WorkerDailyEarning.date == on_date)
            .update(
                {
                    WorkerDailyEarning.amount: WorkerDailyEarning.amount + amount,
                    WorkerDailyEarning.tasks_completed: WorkerDailyEarning.tasks_completed + 1,
                },
                synchronize_session=False,
            )
        )
        return rowcount > 0

    @staticmethod
    def get_daily_earnings(
        db: Session, worker_id: str, since: Optional[date] = None
    ) -> list[WorkerDailyEarning]:
        query = db.query(WorkerDailyEarning).filter(WorkerDailyEarning.worker_id == worker_id)
        if since:
            query = query.filter(WorkerDailyEarning.date >= since)
        return query.order_by(WorkerDailyEarning.date.desc()).all()

    # Job requests
    @staticmethod
    def create_job_request(db: Session, worker_id: str, message: str, on_date: Optional[date]) -> JobRequest:
        job_request = JobRequest(worker_id=worker_id, message=message, date=on_date)
        db.add(job_request)
        db.commit()
        db.refresh(job_request)
        return job_request

    @staticmethod
    def get_job_request(db: Session, request_id: str) -> Optional[JobRequest]:
        return db.query(JobRequest).filter(JobRequest.id == request_id).first()

    @staticmethod
    def list_job_requests(
        db: Session, worker_id: Optional[str] = None, status: Optional[str] = None
    ) -> list[JobRequest]:
        query = db.query(JobRequest)
        if worker_id:
            query = query.filter(JobRequest.worker_id == worker_id)
        if status:
            query = query.filter(JobRequest.status == status)
        return query.order_by(JobRequest.created_at.desc()).all()

    @staticmethod
    def respond_to_job_request(db: Session, job_request: JobRequest, status: str, response: str) -> JobRequest:
        job_request.status = status
        job_request.admin_response = response
        job_request.responded_at = datetime.utcnow()
        db.commit()
        db.refresh(job_request)
        return job_request
