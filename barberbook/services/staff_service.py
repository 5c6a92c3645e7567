"""
Staff service: workers employed by a business.
"""

import logging
from typing import List

from barberbook.core.exceptions import NotFoundError, PermissionDeniedError
from barberbook.core.security import hash_password
from barberbook.db.base import Business, Role, User
from barberbook.repositories.user_repo import UserRepository
from barberbook.schemas.dtos import StaffRequest

logger = logging.getLogger(__name__)


class StaffService:
    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    def list_workers(self, business: Business) -> List[User]:
        return self.user_repo.list_workers(business.id)

    def get_worker(self, business: Business, worker_id: int) -> User:
        """Return a worker of ``business``.

        Raises:
            NotFoundError: no such user
            ValueError: the user exists but is not a worker
            PermissionDeniedError: the worker belongs to another business
        """
        user = self.user_repo.get_by_id(worker_id)
        if user is None:
            raise NotFoundError("Worker not found")
        if user.role != Role.WORKER:
            raise ValueError("User is not a worker")
        if user.business_id != business.id:
            raise PermissionDeniedError()
        return user

    def create_worker(self, business: Business, request: StaffRequest) -> User:
        request.validate(require_password=True)
        if self.user_repo.email_in_use(request.email):
            raise ValueError("Email is already in use")

        worker = self.user_repo.add(
            User(
                name=request.name,
                email=request.email,
                phone=request.phone,
                password_hash=hash_password(request.password),
                role=Role.WORKER,
                business_id=business.id,
            )
        )
        logger.info(
            "Worker created",
            extra={"context": {"worker_id": worker.id, "business_id": business.id}},
        )
        return worker

    def update_worker(self, worker: User, request: StaffRequest) -> User:
        request.validate()
        if self.user_repo.email_in_use(request.email, exclude_id=worker.id):
            raise ValueError("Email is already in use")
        worker.name = request.name
        worker.email = request.email
        worker.phone = request.phone
        if request.password:
            worker.password_hash = hash_password(request.password)
        return self.user_repo.save(worker)

    def delete_worker(self, worker: User) -> None:
        if self.user_repo.count_bookings_as_worker(worker.id) > 0:
            raise ValueError(
                "Cannot delete worker with existing bookings. "
                "Reassign or cancel their bookings first."
            )
        self.user_repo.delete(worker)
        logger.info("Worker deleted", extra={"context": {"worker_id": worker.id}})
