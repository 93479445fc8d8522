from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AgentConfig(BaseModel):
    """
    Options supplied once when the agent is created.

    Accepts camelCase (``batchSize``) or snake_case (``batch_size``) names.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    endpoint: str = "http://127.0.0.1:7358/events"
    session: str = "default"
    batch_size: int = Field(50, ge=1, description="Queue length that triggers an immediate flush")
    batch_interval: int = Field(1000, gt=0, description="Milliseconds between timer flushes")
    capture_console: bool = True
    capture_network: bool = True
    capture_errors: bool = True
    # Upper bound for one delivery request, in seconds
    delivery_timeout: float = Field(5.0, gt=0)
