"""Hardware models with driver bundles maintained in the source share."""
from __future__ import annotations

from enum import Enum


class DriverModel(str, Enum):
    LATITUDE_5490 = "Latitude 5490"
    LATITUDE_5590 = "Latitude 5590"
    LATITUDE_7390 = "Latitude 7390"
    LATITUDE_7480 = "Latitude 7480"
    LATITUDE_7490 = "Latitude 7490"
    OPTIPLEX_7050 = "OptiPlex 7050"
    OPTIPLEX_7060 = "OptiPlex 7060"
    PRECISION_5530 = "Precision 5530"
    PRECISION_7530 = "Precision 7530"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def names(cls) -> list[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: str) -> "DriverModel":
        cleaned = value.strip()
        for member in cls:
            if member.value.lower() == cleaned.lower():
                return member
        raise ValueError(f"Unsupported model '{value}'. Choose one of: {', '.join(cls.names())}")
