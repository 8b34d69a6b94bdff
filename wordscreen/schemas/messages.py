"""
Executor Messages — Request and Reply Models

Pydantic models for everything that crosses the executor boundary.
Messages travel as plain dicts (model_dump) and are re-validated on
the receiving side, so sender and receiver never share an object.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from wordscreen.dictionary import Match


class _Message(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ============================================================
# REQUESTS (foreground → executor)
# ============================================================

class DetectRequest(_Message):
    """Screen text; answered by DetectResult or ErrorReply."""
    type: Literal["detect"] = "detect"
    text: str
    request_id: int = Field(..., ge=0)


class LoadDictionaryRequest(_Message):
    """Replace the dictionary. No reply on success."""
    type: Literal["loadDictionary"] = "loadDictionary"
    words: list[str]


class AddWordsRequest(_Message):
    type: Literal["addWords"] = "addWords"
    words: list[str]


class RemoveWordsRequest(_Message):
    type: Literal["removeWords"] = "removeWords"
    words: list[str]


class SetSeverityRequest(_Message):
    type: Literal["setSeverity"] = "setSeverity"
    word: str = Field(..., min_length=1)
    severity: Literal["low", "medium", "high"]


class GetDictionaryRequest(_Message):
    """Ask for the current word list; answered by DictionaryReply."""
    type: Literal["getDictionary"] = "getDictionary"
    request_id: int = Field(..., ge=0)


Request = Annotated[
    Union[
        DetectRequest,
        LoadDictionaryRequest,
        AddWordsRequest,
        RemoveWordsRequest,
        SetSeverityRequest,
        GetDictionaryRequest,
    ],
    Field(discriminator="type"),
]


# ============================================================
# REPLIES (executor → foreground)
# ============================================================

class MatchPayload(_Message):
    word: str
    start_index: int
    end_index: int
    severity: Literal["low", "medium", "high"]

    @classmethod
    def from_match(cls, match: Match) -> "MatchPayload":
        return cls(
            word=match.word,
            start_index=match.start_index,
            end_index=match.end_index,
            severity=match.severity,
        )

    def to_match(self) -> Match:
        return Match(
            word=self.word,
            start_index=self.start_index,
            end_index=self.end_index,
            severity=self.severity,
        )


class DetectResult(_Message):
    type: Literal["detectResult"] = "detectResult"
    matches: list[MatchPayload]
    request_id: int


class DictionaryReply(_Message):
    type: Literal["dictionary"] = "dictionary"
    words: list[str]
    request_id: int


class ErrorReply(_Message):
    """Any failure inside the executor. request_id is set when the request carried one."""
    type: Literal["error"] = "error"
    message: str
    error_type: str = "Exception"
    request_id: Optional[int] = None


Reply = Annotated[
    Union[DetectResult, DictionaryReply, ErrorReply],
    Field(discriminator="type"),
]


_request_adapter: TypeAdapter = TypeAdapter(Request)
_reply_adapter: TypeAdapter = TypeAdapter(Reply)


def parse_request(raw: dict):
    """Validate a posted dict into a request model. Raises pydantic.ValidationError."""
    return _request_adapter.validate_python(raw)


def parse_reply(raw: dict):
    """Validate a reply dict into a reply model. Raises pydantic.ValidationError."""
    return _reply_adapter.validate_python(raw)
