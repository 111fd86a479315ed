from pydantic import BaseModel

class FormattedTime(BaseModel):
    seconds: int
    formatted: str
