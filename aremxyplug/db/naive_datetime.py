from datetime import datetime, timezone, tzinfo
from typing import Any, Optional

from pydantic_core import core_schema


class NaiveDatetime(datetime):
    """A UTC datetime with the timezone stripped, matching TIMESTAMP WITHOUT TIME ZONE columns."""

    def __new__(cls, *args, **kwargs):
        if args and isinstance(args[0], datetime):
            value = args[0]
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc).replace(tzinfo=None)
            return super().__new__(
                cls,
                value.year,
                value.month,
                value.day,
                value.hour,
                value.minute,
                value.second,
                value.microsecond,
            )
        return super().__new__(cls, *args, **kwargs)

    @classmethod
    def now(cls, tz: Optional[tzinfo] = None) -> "NaiveDatetime":
        """Current UTC time without tzinfo. The tz argument is ignored."""
        return cls(datetime.now(timezone.utc))

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.with_info_before_validator_function(
            cls._convert_to_naive,
            core_schema.datetime_schema(),
        )

    @classmethod
    def _convert_to_naive(cls, value: Any, info: Any) -> Any:
        if isinstance(value, datetime):
            return cls(value)
        return value
