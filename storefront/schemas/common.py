from decimal import Decimal

from pydantic import PlainSerializer
from typing import Annotated


# Decimals go over the wire as JSON numbers rather than strings
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
