"""BarberBook: multi-tenant booking system for barber and salon businesses."""

__version__ = "0.1.0"
