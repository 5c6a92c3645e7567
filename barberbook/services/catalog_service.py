"""
Catalog service: the services (haircut, beard trim, ...) a business offers.
"""

import logging
from typing import List

from barberbook.core.exceptions import NotFoundError
from barberbook.db.base import Business, Service
from barberbook.repositories.service_repo import ServiceRepository
from barberbook.schemas.dtos import ServiceRequest

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, service_repo: ServiceRepository):
        self.service_repo = service_repo

    def list_services(self, business_id: int) -> List[Service]:
        return self.service_repo.list_by_business(business_id)

    def get_service(self, service_id: int) -> Service:
        service = self.service_repo.get_by_id(service_id)
        if service is None:
            raise NotFoundError("Service not found")
        return service

    def create_service(self, business: Business, request: ServiceRequest) -> Service:
        request.validate()
        service = self.service_repo.add(
            Service(
                name=request.name,
                description=request.description,
                duration=request.duration,
                price=request.price,
                business_id=business.id,
            )
        )
        logger.info(
            "Service created",
            extra={"context": {"service_id": service.id, "business_id": business.id}},
        )
        return service

    def update_service(self, service: Service, request: ServiceRequest) -> Service:
        request.validate()
        service.name = request.name
        service.description = request.description
        service.duration = request.duration
        service.price = request.price
        return self.service_repo.save(service)

    def delete_service(self, service: Service) -> None:
        """Delete a service that no booking references."""
        if self.service_repo.count_bookings(service.id) > 0:
            raise ValueError(
                "Cannot delete service with existing bookings. "
                "Consider updating it instead."
            )
        self.service_repo.delete(service)
        logger.info("Service deleted", extra={"context": {"service_id": service.id}})

    def most_booked(self, business_id=None, limit: int = 4) -> List[Service]:
        return self.service_repo.most_booked(business_id=business_id, limit=limit)
