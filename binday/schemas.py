from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel


class ContainerKind(str, Enum):
    BLACK = "Black"
    SILVER = "Silver"
    GREEN = "Green"


# --- Schedule ---
class CollectionEntry(BaseModel):
    """One scheduled visit for one container.

    date_label is the day name exactly as the council page shows it
    ("Tuesday") and is only used when speaking the answer back.
    """
    date_label: str
    collection_date: date
    container: ContainerKind

    model_config = {"frozen": True}


class PropertyRecord(BaseModel):
    address_key: str
    property_id: str
    schedule: list[CollectionEntry] = []


# --- Lookup ---
class Address(BaseModel):
    address_line: str | None = None
    postal_code: str | None = None


class NextCollection(BaseModel):
    address_key: str
    entries: list[CollectionEntry]
    message: str
    refreshed: bool = False
    refresh_scheduled: bool = False


# --- API ---
class CollectionEntryOut(BaseModel):
    date_label: str
    collection_date: date
    container: ContainerKind

    model_config = {"from_attributes": True}


class NextCollectionOut(BaseModel):
    address_key: str
    entries: list[CollectionEntryOut]
    message: str
    refreshed: bool
    refresh_scheduled: bool

    model_config = {"from_attributes": True}


class ErrorOut(BaseModel):
    detail: str
