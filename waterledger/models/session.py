"""
Session Model

The identity of the business currently using the ledger. It is stored in
its own key, separate from the business collections.
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from waterledger.models.records import NAME_MAX_LENGTH, utc_now


_WHITESPACE = re.compile(r"\s+")


def derive_data_key(business_name: str, prefix: str) -> str:
    """
    Storage key for a business.

    >>> derive_data_key("Aab e Hayat", "aab_data_")
    'aab_data_aab_e_hayat'
    """
    return prefix + _WHITESPACE.sub("_", business_name.strip().lower())


class BusinessSession(BaseModel):
    """An authenticated business identity."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )

    business_name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    phone: str = ""
    data_key: str = Field(..., min_length=1)
    login_time: datetime = Field(default_factory=utc_now)
