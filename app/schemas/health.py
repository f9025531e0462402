from pydantic import BaseModel


class ServiceHealth(BaseModel):
    healthy: bool
    message: str


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: str
    what3words: str
    what3words_detail: ServiceHealth
