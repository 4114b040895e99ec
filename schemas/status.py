from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    rooms: int
    peers: int
