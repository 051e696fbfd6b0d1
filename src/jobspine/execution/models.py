"""Wire models exchanged with the scheduling center.

Field aliases follow the scheduler's camelCase JSON, so models can be
validated straight from a request body and dumped back with
``model_dump(by_alias=True)``. Python code uses the snake_case names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for scheduler payloads: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RunRequest(WireModel):
    """One job dispatch from the scheduler."""

    job_id: int = 0
    executor_handler: str = ""
    executor_params: str = ""
    executor_timeout: int = 0
    log_id: int = 0
    log_date_time: int = 0


class LogRequest(WireModel):
    """A "tail my job log" query."""

    # The scheduler spells this field "logDateTim"
    log_date_tim: int = 0
    log_id: int = 0
    from_line_num: int = 0


class LogResponseContent(WireModel):
    """One page of a job log."""

    from_line_num: int = 0
    to_line_num: int = 0
    log_content: str = ""
    is_end: bool = False


class LogResponse(WireModel):
    """Answer to a ``LogRequest``; ``code`` is 200 on success, 500 otherwise."""

    code: int
    msg: str | None = None
    content: LogResponseContent = Field(default_factory=LogResponseContent)
