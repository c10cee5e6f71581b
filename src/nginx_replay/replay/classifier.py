"""
Response Discrepancy Classifier

Compares a replayed response with the response recorded in the access
log. Checks run in a fixed order and the first divergence decides the
classification: status, then a small set of headers, then the body.
"""

import json
from typing import Any, Dict, List, Mapping, Optional

from ..common.utils import parse_header_blob
from ..ingest.records import AccessLogRecord
from ..models import Classification, DiscrepancyKind, ReplayOutcome

# Headers whose value must match when the original response carried them.
VALUE_HEADERS = ('x-continuation-token', 'content-type')
COUNT_HEADER = 'x-total-count'
# Only presence is compared for location.
PRESENCE_HEADER = 'location'


def _is_empty(value: Any) -> bool:
    # Numbers, booleans and null carry no entries.
    if isinstance(value, (dict, list, str)):
        return len(value) == 0
    return True


def _to_pairs(value: Any) -> List[List[Any]]:
    if isinstance(value, dict):
        return [[key, item] for key, item in value.items()]
    if isinstance(value, list):
        return [[str(index), item] for index, item in enumerate(value)]
    return []


def _value_mismatch(original: Any, replayed: Any) -> bool:
    if replayed is None:
        return True
    return str(original) != str(replayed)


class DiscrepancyClassifier:
    """
    Classify replayed responses against their recorded originals.

    Example:
        classifier = DiscrepancyClassifier()
        outcome = classifier.classify(record, 200, {'content-type': 'application/json'}, {'id': 1}, 12.5)
        outcome.classification  # Classification.SUCCESS when everything matches
    """

    def compare_headers(self, original: Mapping[str, Any], replayed: Optional[Mapping[str, Any]]) -> List[str]:
        """
        Compare the checked response headers.

        Args:
            original: Recorded response headers
            replayed: Replayed response headers (any key case)

        Returns:
            Names of the offending headers, in a fixed order
        """
        original = {str(k).lower(): v for k, v in (original or {}).items()}
        replayed = {str(k).lower(): v for k, v in (replayed or {}).items()}
        discrepancies = []

        for name in VALUE_HEADERS:
            if original.get(name) and _value_mismatch(original[name], replayed.get(name)):
                discrepancies.append(name)

        if bool(original.get(PRESENCE_HEADER)) != bool(replayed.get(PRESENCE_HEADER)):
            discrepancies.append(PRESENCE_HEADER)

        if original.get(COUNT_HEADER) and _value_mismatch(original[COUNT_HEADER], replayed.get(COUNT_HEADER)):
            discrepancies.append(COUNT_HEADER)

        return discrepancies

    @staticmethod
    def parse_original_body(text: Optional[str]) -> Any:
        """Decode a recorded body; non-JSON text is compared verbatim."""
        if not text:
            return []
        try:
            return json.loads(text)
        except (json.JSONDecodeError, ValueError):
            return text

    def compare_body(self, original_text: Optional[str], replayed: Any) -> Optional[List[List[Any]]]:
        """
        Structurally compare the recorded body with the replayed one.

        Key order never matters. Two empty bodies always match.

        Returns:
            None when the bodies match, otherwise the top-level entries of
            the original that the replay lacks (possibly an empty list)
        """
        original = self.parse_original_body(original_text)

        if _is_empty(original) and _is_empty(replayed):
            return None
        if original == replayed:
            return None

        replayed_pairs = _to_pairs(replayed)
        return [pair for pair in _to_pairs(original) if pair not in replayed_pairs]

    def classify(
        self,
        record: AccessLogRecord,
        status: int,
        headers: Optional[Dict[str, str]],
        body: Any,
        latency_ms: Optional[float] = None
    ) -> ReplayOutcome:
        """
        Classify one replayed response.

        Args:
            record: Recorded access-log entry
            status: Replayed status code
            headers: Replayed response headers
            body: Replayed body (decoded JSON, text, or None)
            latency_ms: Measured round trip

        Returns:
            ReplayOutcome with classification and discrepancy kind
        """
        outcome = ReplayOutcome(
            classification=Classification.SUCCESS,
            latency_ms=latency_ms,
            status=status,
            body=body,
            headers=headers or {}
        )

        if record.status != str(status):
            outcome.classification = Classification.FAILED
            outcome.discrepancy = DiscrepancyKind.STATUS
            outcome.detail = f"Status - original:{record.status} replay:{status}"
            return outcome

        header_discrepancies = self.compare_headers(parse_header_blob(record.resp_headers), headers)
        if header_discrepancies:
            outcome.classification = Classification.FAILED
            outcome.discrepancy = DiscrepancyKind.HEADERS
            outcome.offending = header_discrepancies
            return outcome

        if record.method != 'POST':
            body_discrepancies = self.compare_body(record.resp_body, body)
            if body_discrepancies is not None:
                outcome.classification = Classification.FAILED
                outcome.discrepancy = DiscrepancyKind.BODY
                outcome.offending = body_discrepancies
                return outcome

        return outcome
