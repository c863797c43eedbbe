"""
Ingestion Value Objects
========================

Stateless helpers for case identifiers and batch file layout.
"""

import re
from datetime import datetime, timezone
from typing import Iterable, List

from supportgpt.config import (
    CASE_ID_PREFIX, ARTIFACT_PREFIX, ARTIFACT_SUFFIX, ARTIFACT_SEPARATOR
)
from supportgpt.core import CaseIdParseException

_ID_BOUNDARY = re.compile(r"-(?=" + re.escape(CASE_ID_PREFIX) + ")")
_HEADER_PATTERN = re.compile(r"^Case ID: (\S+)$", re.MULTILINE)


class CaseIdParser:
    """
    Extracts the creation timestamp embedded in a case ID.

    Case IDs look like ``case-2024-03-01T10:15:00``: everything after the
    first dash is an ISO-8601 timestamp. Naive timestamps are taken as UTC.
    """

    @staticmethod
    def parse_timestamp(case_id: str) -> datetime:
        """
        Parse the timestamp out of a case ID.

        Raises:
            CaseIdParseException: If the ID has no prefix or the rest is not ISO-8601
        """
        if not isinstance(case_id, str) or not case_id.startswith(CASE_ID_PREFIX):
            raise CaseIdParseException(str(case_id))

        try:
            parsed = datetime.fromisoformat(case_id.split("-", 1)[1])
        except (ValueError, IndexError) as e:
            raise CaseIdParseException(case_id, {"reason": str(e)}) from e

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed


class ArtifactFormatter:
    """
    Naming and body layout of batch files.

    Names are derived only from the case IDs in the batch, so re-writing
    the same batch always lands on the same object.
    """

    @staticmethod
    def name_for(case_ids: Iterable[str]) -> str:
        """``cases_<id1>-<id2>-...-<idN>.txt``"""
        return f"{ARTIFACT_PREFIX}{'-'.join(case_ids)}{ARTIFACT_SUFFIX}"

    @staticmethod
    def case_ids_from_name(name: str) -> List[str]:
        """
        Recover the case IDs from a batch file name.

        Case IDs contain dashes themselves, so the name is split only where
        a dash is followed by the case ID prefix. Names that are not batch
        files yield an empty list.
        """
        name = name.rsplit("/", 1)[-1]
        if not (name.startswith(ARTIFACT_PREFIX) and name.endswith(ARTIFACT_SUFFIX)):
            return []
        body = name[len(ARTIFACT_PREFIX):-len(ARTIFACT_SUFFIX)]
        return [part for part in _ID_BOUNDARY.split(body) if part]

    @staticmethod
    def case_ids_in_text(text: str) -> List[str]:
        """Case IDs named by ``Case ID:`` header lines in a rendered body."""
        return _HEADER_PATTERN.findall(text)

    @staticmethod
    def render(records: Iterable[tuple[str, str]]) -> str:
        """
        Render (case_id, text) pairs into the file body.

        Each case is a ``Case ID:`` header, a blank line, the text, then
        a line of 50 ``=`` characters.
        """
        parts = []
        for case_id, text in records:
            parts.append(f"Case ID: {case_id}\n\n")
            parts.append(text)
            parts.append(f"\n\n{ARTIFACT_SEPARATOR}\n\n")
        return "".join(parts)
