"""Domain <-> DTO mappers.

Converts the mutable ProgressRecord into immutable snapshots and the analysis
service's raw JSON payload into a validated MinutesDocument.
"""

import json
from typing import Any, Union

from pydantic import ValidationError

from domain.errors import MalformedResponseError
from domain.models import ProgressRecord
from models import MinutesDocument, ProgressSnapshot


def record_to_snapshot(record: ProgressRecord) -> ProgressSnapshot:
    """Copy a live record into a frozen snapshot."""
    return ProgressSnapshot(**record.as_dict())


def parse_minutes(payload: Union[str, bytes, dict, None]) -> MinutesDocument:
    """Parse the analysis payload into a MinutesDocument.

    Raises MalformedResponseError when the payload is empty, is not JSON, or
    does not have the topics/title/keyPoints/actionItems shape.
    """
    if payload is None or (isinstance(payload, (str, bytes)) and not payload.strip()):
        raise MalformedResponseError(message="Analysis service returned an empty response")

    data: Any = payload
    if isinstance(payload, (str, bytes)):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedResponseError(e) from e

    if not isinstance(data, dict):
        raise MalformedResponseError(
            message=f"Analysis service returned {type(data).__name__}, expected an object"
        )

    try:
        return MinutesDocument.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(e) from e
