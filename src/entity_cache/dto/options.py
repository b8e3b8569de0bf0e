"""Per-request option bag shared by services and transports."""

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field

# Query parameter values httpx encodes as-is
ParamValue = str | int | float | bool


class RequestOptions(BaseModel):
    """Options accepted by every CRUD operation.

    ``alternate_endpoint_format`` is consumed by the entity service and
    removed before the options reach the transport.
    """

    headers: dict[str, str | list[str]] = Field(
        default_factory=dict,
        description="Extra request headers",
    )
    params: dict[str, ParamValue | list[ParamValue]] = Field(
        default_factory=dict,
        description="Query string parameters",
    )
    report_progress: bool = Field(
        False,
        description="Request progress events (ignored by transports that cannot report them)",
    )
    response_type: Literal["json", "text"] = Field(
        "json",
        description="How the response body is parsed",
    )
    with_credentials: bool | None = Field(
        None,
        description="Send credentials with the request (None = transport default)",
    )
    alternate_endpoint_format: str | None = Field(
        None,
        description="Endpoint template overriding the service's template for this call",
        min_length=1,
    )

    model_config = {"extra": "forbid"}

    @classmethod
    def coerce(cls, options: "RequestOptions | Mapping[str, Any] | None") -> "RequestOptions | None":
        """Accept a RequestOptions, a plain mapping or None."""
        if options is None or isinstance(options, RequestOptions):
            return options
        return cls.model_validate(dict(options))

    def for_transport(self) -> "RequestOptions":
        """Copy of these options without the service-only fields."""
        return self.model_copy(update={"alternate_endpoint_format": None})
