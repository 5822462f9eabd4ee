#!/usr/bin/env python3
"""Decoding of cargo's ``--message-format=json`` event stream.

Each stdout line is a self-contained JSON object with a ``reason`` field.
Three reasons are modeled; every other line (other reasons, plain text,
truncated JSON) decodes to ``None`` and is dropped by the caller.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from buildmate.diagnostics import ParsedError, ParsedWarning


REASON_COMPILER_MESSAGE = "compiler-message"
REASON_COMPILER_ARTIFACT = "compiler-artifact"
REASON_BUILD_SCRIPT_EXECUTED = "build-script-executed"


class MessageLevel(Enum):
    ERROR = "error"
    WARNING = "warning"
    OTHER = "other"  # note, help, failure-note, ice, ...

    @classmethod
    def from_raw(cls, level: str) -> "MessageLevel":
        if level == "error":
            return cls.ERROR
        if level == "warning":
            return cls.WARNING
        return cls.OTHER


@dataclass(frozen=True)
class CompilerMessage:
    level: MessageLevel
    message: str
    rendered_text: str
    file: str
    line: int
    column: int
    code: str = "unknown"
    package_id: str = ""

    def to_error(self) -> ParsedError:
        return ParsedError(
            message=self.message,
            file=self.file,
            line=self.line,
            column=self.column,
            code=self.code,
        )

    def to_warning(self) -> ParsedWarning:
        return ParsedWarning(
            message=self.message,
            file=self.file,
            line=self.line,
            column=self.column,
            code=self.code,
        )


@dataclass(frozen=True)
class CompilerArtifact:
    package_id: str
    target_name: str
    filenames: tuple[str, ...] = ()
    kind: tuple[str, ...] = ()
    features: tuple[str, ...] = ()
    fresh: bool = False

    def __str__(self) -> str:
        return f"📦 {self.target_name} -> {', '.join(self.filenames)}"


@dataclass(frozen=True)
class BuildScriptExecuted:
    package_id: str
    linked_libs: tuple[str, ...] = field(default=())
    linked_paths: tuple[str, ...] = field(default=())
    cfgs: tuple[str, ...] = field(default=())

    @property
    def lib_count(self) -> int:
        return len(self.linked_libs)

    @property
    def path_count(self) -> int:
        return len(self.linked_paths)

    @property
    def cfg_count(self) -> int:
        return len(self.cfgs)

    def __str__(self) -> str:
        return (
            f"🔨 {self.package_id} -> libs: {self.lib_count}, "
            f"paths: {self.path_count}, cfgs: {self.cfg_count}"
        )


BuildEvent = Union[CompilerMessage, CompilerArtifact, BuildScriptExecuted]


def _str_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item) for item in value)


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


def _primary_span(spans: Any) -> Optional[dict[str, Any]]:
    """First span flagged primary, else the first span, else None."""
    if not isinstance(spans, list):
        return None
    candidates = [s for s in spans if isinstance(s, dict)]
    for span in candidates:
        if span.get("is_primary"):
            return span
    return candidates[0] if candidates else None


def _decode_compiler_message(obj: dict[str, Any]) -> Optional[CompilerMessage]:
    diagnostic = obj.get("message")
    if not isinstance(diagnostic, dict):
        return None
    level = diagnostic.get("level")
    if not isinstance(level, str):
        return None

    code_obj = diagnostic.get("code")
    code = "unknown"
    if isinstance(code_obj, dict) and isinstance(code_obj.get("code"), str):
        code = code_obj["code"]

    file, line, column = "", 0, 0
    span = _primary_span(diagnostic.get("spans"))
    if span is not None:
        file = str(span.get("file_name") or "")
        line = _as_int(span.get("line_start"))
        column = _as_int(span.get("column_start"))

    message = diagnostic.get("message")
    rendered = diagnostic.get("rendered")
    return CompilerMessage(
        level=MessageLevel.from_raw(level),
        message=message if isinstance(message, str) else "",
        rendered_text=rendered if isinstance(rendered, str) else "",
        file=file,
        line=line,
        column=column,
        code=code,
        package_id=str(obj.get("package_id") or ""),
    )


def _decode_artifact(obj: dict[str, Any]) -> Optional[CompilerArtifact]:
    target = obj.get("target")
    if not isinstance(target, dict) or not isinstance(target.get("name"), str):
        return None
    return CompilerArtifact(
        package_id=str(obj.get("package_id") or ""),
        target_name=target["name"],
        filenames=_str_list(obj.get("filenames")),
        kind=_str_list(target.get("kind")),
        features=_str_list(obj.get("features")),
        fresh=bool(obj.get("fresh", False)),
    )


def _decode_build_script(obj: dict[str, Any]) -> Optional[BuildScriptExecuted]:
    package_id = obj.get("package_id")
    if not isinstance(package_id, str):
        return None
    return BuildScriptExecuted(
        package_id=package_id,
        linked_libs=_str_list(obj.get("linked_libs")),
        linked_paths=_str_list(obj.get("linked_paths")),
        cfgs=_str_list(obj.get("cfgs")),
    )


_DECODERS = {
    REASON_COMPILER_MESSAGE: _decode_compiler_message,
    REASON_COMPILER_ARTIFACT: _decode_artifact,
    REASON_BUILD_SCRIPT_EXECUTED: _decode_build_script,
}


def decode_event(line: str) -> Optional[BuildEvent]:
    """Decode one stdout line into a BuildEvent.

    Returns None for anything that is not a recognized event. This is the
    normal path for plain-text output interleaved with the JSON stream, so it
    is never treated as an error.
    """
    line = line.strip()
    if not line.startswith("{"):
        return None
    try:
        obj = json.loads(line)
    except (json.JSONDecodeError, RecursionError):
        return None
    if not isinstance(obj, dict):
        return None
    reason = obj.get("reason")
    if not isinstance(reason, str):
        return None
    decoder = _DECODERS.get(reason)
    if decoder is None:
        return None
    return decoder(obj)
