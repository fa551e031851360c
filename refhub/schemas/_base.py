# refhub/schemas/_base.py
from typing_extensions import Annotated
from pydantic.functional_validators import BeforeValidator

# Store ObjectIds as strings in API responses
PyObjectId = Annotated[str, BeforeValidator(lambda x: str(x))]
