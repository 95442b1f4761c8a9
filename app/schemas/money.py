from decimal import Decimal
from typing import Annotated

from pydantic import Field

# Matches the Numeric(10, 2) money columns, so a value is stored exactly as
# sent or rejected with 400; sign checks stay with the handlers.
Preco = Annotated[Decimal, Field(max_digits=10, decimal_places=2)]
