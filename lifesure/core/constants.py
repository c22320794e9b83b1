"""Shared constants and enums used across the application."""

from enum import StrEnum


class Role(StrEnum):
    """Authorization roles stored on the user record."""

    CUSTOMER = "customer"
    AGENT = "agent"
    ADMIN = "admin"


class ApplicationStatus(StrEnum):
    """Status of a policy application. Any status may be written at any time."""

    PENDING = "pending"
    PROCESSING = "processing"
    APPROVED = "approved"
    REJECTED = "rejected"


class AgentApplicationStatus(StrEnum):
    """Status of a customer's request to become an agent."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AgentApplicationAction(StrEnum):
    APPROVE = "approve"
    REJECT = "reject"


class PaymentStatus(StrEnum):
    COMPLETED = "completed"


class ClaimStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
