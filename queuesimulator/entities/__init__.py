"""Customers and the queues they wait in."""

from queuesimulator.entities.customer import Customer, next_id, reset_ids
from queuesimulator.entities.queue import ServiceQueue

__all__ = [
    "Customer",
    "ServiceQueue",
    "next_id",
    "reset_ids",
]
