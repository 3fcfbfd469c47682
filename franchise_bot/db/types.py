from datetime import datetime
from typing import Annotated

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import mapped_column

big_int = Annotated[int, mapped_column(BigInteger)]
short_str_an = Annotated[str | None, mapped_column(String(100))]
created_at_an = Annotated[datetime, mapped_column(DateTime, default=func.now())]
updated_at_an = Annotated[
    datetime,
    mapped_column(DateTime, default=func.now(), onupdate=func.now()),
]
