"""Configuration for the TestRail catalog."""

from pydantic import BaseModel, Field, SecretStr


class TestRailConfig(BaseModel):
    """Configuration for the TestRail catalog."""

    __test__ = False

    url: str
    username: str
    api_key: SecretStr
    # Instances served behind URL rewriting expose the API at "/api/v2"
    api_path: str = "/index.php?/api/v2"
    page_size: int = Field(default=250, ge=1, le=250)
    passed_status_id: int = 1
    failed_status_id: int = 5
    timeout: float = 60
