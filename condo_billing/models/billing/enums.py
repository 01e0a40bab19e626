"""Enumeration types for billing entities."""

from enum import Enum


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    OVERDUE = "OVERDUE"


class PaymentMethod(str, Enum):
    PIX = "PIX"
    BOLETO = "BOLETO"
    TRANSFER = "TRANSFER"
    CASH = "CASH"


class ResidentStanding(str, Enum):
    CURRENT = "CURRENT"
    OVERDUE = "OVERDUE"


class PixKeyType(str, Enum):
    CPF = "CPF"
    CNPJ = "CNPJ"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    EVP = "EVP"
