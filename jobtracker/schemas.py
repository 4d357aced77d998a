from __future__ import annotations
import datetime as dt
from typing import Annotated, Any, Mapping, Optional
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .domain import Status
from .errors import ValidationError
from .utils.dates import format_date_only, to_date_only

DateOnly = Annotated[
    Optional[dt.date],
    BeforeValidator(to_date_only),
    PlainSerializer(format_date_only, return_type=Optional[str]),
]

COLUMNS = [
    "id",
    "company",
    "position",
    "location",
    "salary_range",
    "workplace_type",
    "status",
    "notes",
    "website",
    "date_applied",
]


class JobApplication(BaseModel):
    """One tracked application.

    Parsers build an empty record and fill it field by field, so every text
    field defaults to "". JSON uses camelCase names (salaryRange, dateApplied).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    id: Optional[int] = None
    company: str = ""
    position: str = ""
    location: str = ""
    salary_range: str = ""
    workplace_type: str = ""
    status: Status = Status.submitted
    notes: str = ""
    website: str = ""
    date_applied: DateOnly = Field(default=None)

    def add_note(self, text: str) -> None:
        self.notes = f"{self.notes}\n{text}" if self.notes else text

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> "JobApplication":
        try:
            return cls.model_validate_json(data)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid job application JSON: {exc}") from exc

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "JobApplication":
        """Build a record from a database row; NULL text columns become ""."""
        data = {col: row[col] for col in COLUMNS}
        for col in COLUMNS:
            if data[col] is None and col not in ("id", "date_applied"):
                data[col] = ""
        if data["status"] == "":
            data["status"] = Status.submitted
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid stored row id={row['id']}: {exc}") from exc

    def to_row(self) -> dict[str, Any]:
        row = self.model_dump(exclude={"id"})
        row["status"] = self.status.value
        row["date_applied"] = format_date_only(self.date_applied)
        return row
